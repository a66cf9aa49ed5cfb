"""
Newsletter Dispatch
===================

Delivers one published newsletter to every eligible subscriber in
fixed-size batches. Sends inside a batch run together, batches run one
after another with a pause in between, and a failed send only counts
against the result.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass

from newsdesk.core.logging_service import db_log
from newsdesk.modules.email import templates

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_SITE_NAME = 'Newsletter Website'


@dataclass
class DispatchResult:
    """Outcome of one newsletter dispatch"""
    sent: int = 0
    failed: int = 0
    total: int = 0

    def to_dict(self):
        return asdict(self)


class NewsletterDispatcher:
    """
    Fan a newsletter out to subscribers.

    Args:
        directory: SubscriberDirectory used to find recipients and record sends
        settings: SettingsStore providing max_newsletters_per_batch and site_name
        mailer: object with an awaitable send_email_async(recipient, subject, html, text)
        frontend_url: base for newsletter and unsubscribe links
        batch_delay: seconds to pause between batches
        sleep: coroutine used for the pause, replaceable in tests
    """

    def __init__(self, directory, settings, mailer, frontend_url='http://localhost:3000',
                 batch_delay=1.0, sleep=asyncio.sleep):
        self.directory = directory
        self.settings = settings
        self.mailer = mailer
        self.frontend_url = frontend_url.rstrip('/')
        self.batch_delay = batch_delay
        self.sleep = sleep

    async def dispatch(self, newsletter) -> DispatchResult:
        """
        Send newsletter to all eligible subscribers.

        Store errors while loading recipients or settings propagate, per
        subscriber send failures are counted in DispatchResult.failed.
        The caller is responsible for checking the newsletter is published.
        """
        eligible = await asyncio.to_thread(
            self.directory.find_eligible_for_newsletter, newsletter['type'])
        if not eligible:
            logger.info(f"No eligible subscribers for newsletter {newsletter.get('id')}")
            return DispatchResult()

        batch_size = await asyncio.to_thread(
            self.settings.get, 'max_newsletters_per_batch', DEFAULT_BATCH_SIZE)
        site_name = await asyncio.to_thread(
            self.settings.get, 'site_name', DEFAULT_SITE_NAME)
        batch_size = max(1, int(batch_size))

        result = DispatchResult(total=len(eligible))
        pending = set()

        for start in range(0, len(eligible), batch_size):
            batch = eligible[start:start + batch_size]
            outcomes = await asyncio.gather(
                *(self._send(newsletter, subscriber, site_name) for subscriber in batch),
                return_exceptions=True,
            )

            for subscriber, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    result.failed += 1
                    logger.error(f"Failed to send newsletter to {subscriber['email']}: {outcome}")
                    db_log('error', 'newsletters', f"Failed to send newsletter to {subscriber['email']}",
                           {'newsletter_id': newsletter.get('id'), 'error': str(outcome)})
                    continue

                result.sent += 1
                # Stats updates run in the background, the next batch does not wait
                task = asyncio.create_task(self._record_sent(subscriber))
                pending.add(task)
                task.add_done_callback(pending.discard)

            if start + batch_size < len(eligible):
                await self.sleep(self.batch_delay)

        if pending:
            await asyncio.gather(*list(pending))

        logger.info(f"Newsletter {newsletter.get('id')} dispatched: {result}")
        db_log('info', 'newsletters', f"Newsletter dispatched: {newsletter.get('title')}",
               result.to_dict())
        return result

    async def _send(self, newsletter, subscriber, site_name):
        subject, html_body, text_body = templates.newsletter_issue(
            newsletter, subscriber, site_name, self.frontend_url)
        return await self.mailer.send_email_async(
            subscriber['email'], subject, html_body, text_body, 'newsletter')

    async def _record_sent(self, subscriber):
        try:
            await asyncio.to_thread(self.directory.record_email_sent, subscriber['id'])
        except Exception as e:
            logger.error(f"Failed to update stats for subscriber {subscriber['id']}: {e}")
