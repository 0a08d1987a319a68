"""CJ Dropshipping adapter — production supplier integration over HTTP.

Every call:
- waits on the shared ``TokenBucket`` (the API allows roughly one request
  every three seconds per account),
- carries an explicit timeout,
- is retried a bounded number of times on transport errors only.

Non-success API responses (``code`` other than 200/0) raise
``SupplierError`` immediately; they are not retried.
"""

from datetime import UTC, datetime, timedelta

import requests
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from supplier.port import FreightOption, ShipmentLine, ShipmentRequest, SupplierError, SupplierPort
from supplier.rate_limit import TokenBucket

logger = structlog.get_logger(__name__)

_TOKEN_REFRESH_BUFFER = timedelta(minutes=2)
# The auth endpoint itself is limited to one call per 300 seconds
_AUTH_MIN_INTERVAL = timedelta(seconds=300)
_TRANSIENT_ERRORS = (requests.ConnectionError, requests.Timeout)


class CJSupplier(SupplierPort):
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 15.0,
        max_attempts: int = 3,
        rate_limiter: TokenBucket | None = None,
        session: requests.Session | None = None,
        retry_wait=None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.rate_limiter = rate_limiter or TokenBucket.every(3.0)
        self.session = session or requests.Session()
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=8)

        self._access_token: str | None = None
        self._token_expiry: datetime | None = None
        self._last_auth_request: datetime | None = None

    # -------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------
    def _authenticate(self) -> str:
        now = datetime.now(UTC)
        if self._access_token and self._token_expiry and self._token_expiry > now + _TOKEN_REFRESH_BUFFER:
            return self._access_token

        if self._last_auth_request and now - self._last_auth_request < _AUTH_MIN_INTERVAL:
            raise SupplierError("Supplier auth throttled: one token request per 300 seconds")
        self._last_auth_request = now

        body = self._send("POST", "/authentication/getAccessToken", json={"apiKey": self.api_key}, auth=False)
        if not body.get("result"):
            raise SupplierError(f"Supplier auth failed: {body.get('message')}", code=body.get("code"))

        data = body.get("data") or {}
        self._access_token = data.get("accessToken")
        expiry = data.get("accessTokenExpiryDate")
        self._token_expiry = _parse_expiry(expiry) if expiry else now + timedelta(days=1)
        logger.info("Supplier access token refreshed", expires_at=self._token_expiry.isoformat())
        return self._access_token

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    def _send(self, method: str, endpoint: str, auth: bool = True, **kwargs) -> dict:
        headers = {"Content-Type": "application/json"}
        if auth:
            headers["CJ-Access-Token"] = self._authenticate()

        @retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            reraise=True,
        )
        def _attempt():
            self.rate_limiter.acquire()
            response = self.session.request(
                method,
                f"{self.base_url}{endpoint}",
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
            return response.json()

        try:
            return _attempt()
        except _TRANSIENT_ERRORS as exc:
            logger.error("Supplier request failed", endpoint=endpoint, error=str(exc))
            raise SupplierError(f"Supplier unreachable: {exc}") from exc
        except ValueError as exc:
            raise SupplierError(f"Invalid supplier response from {endpoint}: {exc}") from exc

    def _call(self, method: str, endpoint: str, **kwargs):
        body = self._send(method, endpoint, **kwargs)
        code = body.get("code")
        if code not in (200, 0):
            logger.error("Supplier API error", endpoint=endpoint, code=code, message=body.get("message"))
            raise SupplierError(f"Supplier API error: {body.get('message')} (code: {code})", code=code)
        return body.get("data")

    # -------------------------------------------------------------------
    # SupplierPort
    # -------------------------------------------------------------------
    def get_tracking(self, supplier_order_number: str):
        return self._call("GET", "/logistic/trackingInfo", params={"orderNumber": supplier_order_number})

    def create_order(self, request: ShipmentRequest) -> dict:
        payload = {
            "orderNumber": request.order_number,
            "shippingZip": request.shipping_zip,
            "shippingCountryCode": request.shipping_country_code,
            "shippingCountry": request.shipping_country_code,
            "fromCountryCode": "US",
            "shippingProvince": request.shipping_province,
            "shippingCity": request.shipping_city,
            "shippingAddress": request.shipping_address,
            "shippingCustomerName": request.shipping_name,
            "shippingPhone": request.shipping_phone,
            "email": request.email,
            "logisticName": request.logistic_name,
            "products": [
                {"vid": line.supplier_variant_id, "quantity": line.quantity, "wareHouseCountryCode": "US"}
                for line in request.lines
            ],
            "payType": 2,
        }
        logger.info(
            "Creating supplier order",
            order_number=request.order_number,
            lines=len(request.lines),
            placeholders=list(request.placeholder_fields),
        )
        return self._call("POST", "/shopping/order/createOrderV2", json=payload) or {}

    def get_product_stock(self, supplier_product_id: str) -> dict:
        return self._call("GET", "/product/stock/getInventoryByPid", params={"pid": supplier_product_id}) or {}

    def calculate_freight(
        self,
        lines: list[ShipmentLine],
        destination_country: str = "US",
        origin_country: str = "US",
    ) -> list[FreightOption]:
        data = self._call(
            "POST",
            "/logistic/freightCalculate",
            json={
                "startCountryCode": origin_country,
                "endCountryCode": destination_country,
                "products": [{"vid": line.supplier_variant_id, "quantity": line.quantity} for line in lines],
            },
        )
        return [
            FreightOption(
                logistic_name=str(row.get("logisticName", "")),
                price=float(row.get("logisticPrice") or 0),
                aging=row.get("logisticAging"),
            )
            for row in (data or [])
            if isinstance(row, dict)
        ]


def _parse_expiry(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return datetime.now(UTC) + timedelta(days=1)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
