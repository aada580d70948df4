import threading
from typing import ClassVar

from doc_classifier.classification.http_client_adapter import HttpClassificationClient
from doc_classifier.classification.retry import RetryPolicy
from doc_classifier.config.settings import Settings


class ClassifierFactory:
    """Creates the configured classification client."""

    API_SERVERS: ClassVar[dict[str, str]] = {
        "local": "http://127.0.0.1:8000",
        "remote": "https://gb-ocr-stage.vertekx.com",
    }

    @classmethod
    def create(
        cls,
        settings: Settings,
        cancel_event: threading.Event | None = None,
    ) -> HttpClassificationClient:
        retry_policy = RetryPolicy(
            max_retries=settings.retry_max_retries,
            base_delay_seconds=settings.retry_base_delay_seconds,
            cancel_event=cancel_event,
        )
        return HttpClassificationClient(
            base_url=cls.resolve_base_url(settings),
            retry_policy=retry_policy,
            cancel_event=cancel_event,
        )

    @classmethod
    def resolve_base_url(cls, settings: Settings) -> str:
        explicit = settings.api_base_url.strip()
        if explicit:
            return explicit.rstrip("/")
        server = settings.api_server.lower()
        url = cls.API_SERVERS.get(server)
        if url is None:
            raise ValueError(
                f"Unknown API server '{server}'. Choose from: {sorted(cls.API_SERVERS)}"
            )
        return url
