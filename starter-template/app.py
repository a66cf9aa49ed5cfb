"""
Newsdesk Starter Template
=========================

A ready-to-run Flask API with all Newsdesk modules enabled.

Run with:
    python app.py

Visit:
    http://localhost:5000                      - Module list
    http://localhost:5000/api/settings/public  - Public site settings
"""

from flask import Flask, jsonify
from newsdesk import Newsdesk

from config import Config

# Create Flask app
app = Flask(__name__)
app.config.from_object(Config)

# Initialize Newsdesk - this registers all modules automatically
newsdesk = Newsdesk(app)

# Seed site_name, max_newsletters_per_batch and friends on first run
newsdesk.settings.initialize_defaults()


# =============================================================================
# Your Routes - Add your own routes below
# =============================================================================

@app.route('/')
def index():
    return jsonify({
        'success': True,
        'modules': newsdesk.get_registered_modules(),
    })


# =============================================================================
# Run the app
# =============================================================================

if __name__ == '__main__':
    print("\n" + "=" * 60)
    print("Newsdesk Starter Template")
    print("=" * 60)
    print(f"API root:        http://localhost:{Config.PORT}")
    print(f"Public settings: http://localhost:{Config.PORT}/api/settings/public")
    print(f"Newsletters:     http://localhost:{Config.PORT}/api/newsletters")
    print("=" * 60 + "\n")

    app.run(host='0.0.0.0', port=Config.PORT, debug=not Config.IS_PRODUCTION)
