# storefront/services/mail_client.py
import requests
from requests import RequestException

from storefront.domain.errors import DeliveryError
from storefront.utils.settings import MAIL_API_URL, MAIL_API_KEY, MAIL_FROM, MAIL_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class MailClient:
    """
    Klient HTTP mail API (SendGrid/SES-like).
    Bez retry - o ponawianiu decyduje wywolujacy (notifier tak, raport nie).
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        sender: str | None = None,
        timeout: float | None = None,
    ):
        self.api_url = api_url or MAIL_API_URL
        self.api_key = MAIL_API_KEY if api_key is None else api_key
        self.sender = sender or MAIL_FROM
        self.timeout = timeout or MAIL_TIMEOUT_SECONDS

    def send(self, to: str, subject: str, html: str) -> None:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        logger.info(f"MailClient POST {self.api_url} to={to} subject={subject!r}")

        try:
            resp = requests.post(
                self.api_url,
                json={"from": self.sender, "to": to, "subject": subject, "html": html},
                headers=headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except RequestException as e:
            raise DeliveryError(f"Mail delivery to {to} failed: {e}") from e
