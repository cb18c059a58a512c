"""
Setup script for booking_pricing package.
"""

from setuptools import setup, find_packages

setup(
    name="booking-pricing-engine",
    version="1.0.0",
    description="Moteur de tarification dynamique des acomptes de réservation (règles, prévisions, recommandations)",
    author="PricEye Team",
    packages=find_packages(exclude=["scripts", "*.tests", "*.tests.*"]),
    install_requires=[
        "supabase>=2.0.0",
        "pandas>=2.0.0",
        "python-dotenv>=1.0.0",
        "pytz>=2023.3",
        "python-dateutil>=2.8.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "booking-pricing-server=booking_pricing.server:main",
        ],
    },
    python_requires=">=3.9",
)
