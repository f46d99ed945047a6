# shelfpick/api/deps.py
# external system clients as FastAPI dependencies (tests override them)
from __future__ import annotations

from shelfpick.core.config import get_settings
from shelfpick.integrations.ecommerce_client import EcommerceClient, HttpEcommerceClient
from shelfpick.integrations.erp_client import ErpClient, HttpErpClient


def get_erp_client() -> ErpClient:
    return HttpErpClient(get_settings())


def get_ecommerce_client() -> EcommerceClient:
    return HttpEcommerceClient(get_settings())
