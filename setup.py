from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="newsdesk",
    version="0.1.0",
    author="Newsdesk Contributors",
    author_email="your.email@example.com",
    description="A Flask extension for newsletter sites: subscribers, newsletters, batched email dispatch, contacts and settings",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/newsdesk",
    packages=find_packages(exclude=["tests", "tests.*", "starter-template"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Communications :: Email",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: Flask",
    ],
    python_requires=">=3.9",
    install_requires=[
        "Flask>=3.0.0",
        "Flask-CORS>=4.0.0",
        "python-dotenv>=1.0.0",
        "Werkzeug>=3.0.0",
        "MarkupSafe>=2.1.0",
    ],
    extras_require={
        "resend": [
            "resend>=0.7.0",
        ],
        "dev": [
            "pytest>=7.0",
            "pytest-flask>=1.2",
            "black>=22.0",
            "flake8>=5.0",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
