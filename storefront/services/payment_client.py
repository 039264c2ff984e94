# storefront/services/payment_client.py
import requests
from requests import RequestException

from storefront.domain.errors import PaymentError, RemoteOperationError, ValidationError
from storefront.domain.models import PaymentOutcome
from storefront.domain.pricing import to_decimal, to_minor_units
from storefront.utils.logging import get_logger
from storefront.utils.settings import (
    HTTP_TIMEOUT_SECONDS,
    PAYMENT_API_URL,
    PAYMENT_FUNCTION_URL,
    PAYMENT_METHOD,
    PAYMENT_PUBLISHABLE_KEY,
    SUPABASE_ANON_KEY,
)

logger = get_logger(__name__)


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message") or resp.reason
    return error or body.get("message") or resp.reason


class PaymentClient:
    """
    Payment boundary.

    The intent is created by a server-side function that holds the secret
    key, the confirmation goes straight to the processor with the
    publishable key. Neither call is retried, a repeated POST could charge
    twice.
    """

    def __init__(
        self,
        function_url: str | None = None,
        api_url: str | None = None,
        api_key: str | None = None,
        publishable_key: str | None = None,
        payment_method: str | None = None,
        access_token: str | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.function_url = function_url or PAYMENT_FUNCTION_URL
        self.api_url = (api_url or PAYMENT_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else SUPABASE_ANON_KEY
        self.publishable_key = publishable_key if publishable_key is not None else PAYMENT_PUBLISHABLE_KEY
        self.payment_method = payment_method or PAYMENT_METHOD
        self.access_token = access_token
        self.timeout = timeout
        self.http = session or requests.Session()

    def _post(self, url: str, **kwargs) -> requests.Response:
        logger.info(f"PaymentClient POST {url}")
        try:
            return self.http.post(url, timeout=self.timeout, **kwargs)
        except RequestException as e:
            logger.error(f"PaymentClient POST {url} transport error: {e}")
            raise RemoteOperationError(f"Payment service unreachable: {e}") from e

    def create_payment_intent(self, amount) -> str:
        """Amount in major units, sent as minor units. Returns the client secret."""
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValidationError("Payment amount must be positive", field="amount")
        cents = to_minor_units(amount)

        resp = self._post(
            self.function_url,
            json={"amount": cents},
            headers={
                "apikey": self.api_key,
                "Authorization": f"Bearer {self.access_token or self.api_key}",
            },
        )
        if not resp.ok:
            message = _error_message(resp)
            logger.error(f"Payment intent for {cents} failed with {resp.status_code}: {message}")
            raise PaymentError(message)

        secret = resp.json().get("clientSecret")
        if not secret:
            raise PaymentError("Payment service returned no client secret")
        logger.info(f"Payment intent created for {cents} minor units")
        return secret

    def confirm_payment(self, client_secret: str) -> PaymentOutcome:
        intent_id = client_secret.split("_secret_")[0]
        resp = self._post(
            f"{self.api_url}/v1/payment_intents/{intent_id}/confirm",
            data={"client_secret": client_secret, "payment_method": self.payment_method},
            headers={"Authorization": f"Bearer {self.publishable_key}"},
        )
        if not resp.ok:
            message = _error_message(resp)
            logger.error(f"Payment {intent_id} confirmation failed with {resp.status_code}: {message}")
            raise PaymentError(message)

        body = resp.json()
        outcome = PaymentOutcome(intent_id=body.get("id", intent_id), status=body.get("status", "unknown"))
        logger.info(f"Payment {outcome.intent_id} status {outcome.status}")
        return outcome

    def pay(self, amount) -> PaymentOutcome:
        outcome = self.confirm_payment(self.create_payment_intent(amount))
        if not outcome.succeeded:
            raise PaymentError(f"Payment was not completed (status: {outcome.status})")
        return outcome
