from setuptools import setup, find_packages

setup(
    name="devbunker-portal",
    version="1.0.0",
    description="Web portal for browsing, authoring and moderating DevBunker content",
    packages=find_packages(include=["devbunker", "devbunker.*"]),
    include_package_data=True,
    package_data={
        "devbunker": ["templates/*.html", "templates/*/*.html", "static/*/*"],
    },
    python_requires=">=3.8",
    install_requires=[
        "Flask>=2.3.0",
        "Flask-Login>=0.6.3",
        "requests>=2.31.0",
        "Werkzeug>=2.3.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "black>=23.0.0",
            "pylint>=2.17.0",
        ]
    },
)
