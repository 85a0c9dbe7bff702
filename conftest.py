"""
Pytest configuration for Django tests.
"""
import os

# pytest-django reads the module from pyproject.toml; this covers direct runs.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'shop_orders.settings')
