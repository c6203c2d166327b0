# storefront/services/product_client.py
import requests
from requests import RequestException
from pydantic import ValidationError as SchemaError

from storefront.domain.errors import DependencyError
from storefront.domain.schemas import CatalogProduct
from storefront.utils.retry import http_retry
from storefront.utils.settings import PRODUCT_SERVICE_URL, PRODUCT_SERVICE_TIMEOUT
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """Klient katalogu produktow (product-service), tylko odczyt."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout or PRODUCT_SERVICE_TIMEOUT

    def fetch_product(self, product_id: str) -> CatalogProduct | None:
        """None gdy katalog zwraca 404."""
        try:
            data = self._get_product(product_id)
        except RequestException as e:
            logger.error(f"Product service unavailable for product {product_id}: {e}")
            raise DependencyError("Product catalog unavailable") from e

        if data is None:
            return None

        try:
            return CatalogProduct.model_validate(data)
        except SchemaError as e:
            logger.error(f"Malformed catalog record for product {product_id}: {e}")
            raise DependencyError("Malformed catalog record") from e

    @http_retry()
    def _get_product(self, product_id: str) -> dict | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        # 404 to odpowiedz, nie awaria, bez retry
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()
