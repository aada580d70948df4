import json
import mimetypes
import threading
from concurrent.futures import Future
from typing import Any

import httpx

from doc_classifier.classification.base import BaseClassificationClient
from doc_classifier.classification.exceptions import (
    ClassificationError,
    ClassificationNetworkError,
    ClassificationRemoteError,
)
from doc_classifier.classification.retry import RetryPolicy
from doc_classifier.classification.structures import ClassificationStructure
from doc_classifier.logging.logger import Log
from doc_classifier.processor.exceptions import ProcessingCancelledError
from doc_classifier.processor.models import UploadedFile

CANCEL_POLL_SECONDS = 0.1


class HttpClassificationClient(BaseClassificationClient):
    """Classification client that talks to the backend over multipart HTTP.

    Requests have no timeout; the backend may take arbitrarily long. Only the
    send is retried, a non-2xx response is surfaced immediately.

    With a cancel_event the send runs on a daemon thread and the caller polls
    the event, so a cancelled batch is released even while the backend is
    still silent. The abandoned request ends when the client is closed or
    the backend answers.
    """

    def __init__(
        self,
        *,
        base_url: str,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.BaseTransport | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._retry_policy = retry_policy or RetryPolicy()
        self._cancel_event = cancel_event
        self._client = httpx.Client(base_url=base_url, timeout=None, transport=transport)

    def categorize(self, files: list[UploadedFile]) -> dict[str, Any]:
        return self._post("/categorize", files)

    def group_credit_cards(
        self,
        files: list[UploadedFile],
        structure: ClassificationStructure,
    ) -> dict[str, Any]:
        return self._post("/group_credit_cards", files, structure)

    def group_documents(
        self,
        files: list[UploadedFile],
        structure: ClassificationStructure,
    ) -> dict[str, Any]:
        return self._post("/group_documents", files, structure)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpClassificationClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _post(
        self,
        path: str,
        files: list[UploadedFile],
        structure: ClassificationStructure | None = None,
    ) -> dict[str, Any]:
        data = None
        if structure is not None:
            data = {"document_structure": structure.to_json()}
            Log.debug(f"POST {path} document_structure: {data['document_structure']}")
        Log.info(f"POST {path} - sending {len(files)} files: {[f.name for f in files]}")

        response = self._retry_policy.call(
            lambda: self._send(path, files, data),
            description=f"POST {path}",
        )

        if not response.is_success:
            body = response.text
            Log.error(f"POST {path} error: {response.status_code} {body}")
            raise ClassificationRemoteError(f"POST {path}", response.status_code, body)

        result = self._parse_json(path, response.text)
        Log.info(f"POST {path} - completed")
        return result

    def _send(
        self,
        path: str,
        files: list[UploadedFile],
        data: dict[str, str] | None,
    ) -> httpx.Response:
        if self._cancel_event is None:
            return self._request(path, files, data)
        if self._cancel_event.is_set():
            raise ProcessingCancelledError(f"POST {path} cancelled")

        future: Future[httpx.Response] = Future()

        def request() -> None:
            try:
                future.set_result(self._request(path, files, data))
            except Exception as exc:
                future.set_exception(exc)

        threading.Thread(target=request, name=f"POST {path}", daemon=True).start()
        while True:
            try:
                return future.result(timeout=CANCEL_POLL_SECONDS)
            except TimeoutError:
                if self._cancel_event.is_set():
                    Log.warning(f"POST {path} abandoned: batch cancelled")
                    raise ProcessingCancelledError(f"POST {path} cancelled") from None

    def _request(
        self,
        path: str,
        files: list[UploadedFile],
        data: dict[str, str] | None,
    ) -> httpx.Response:
        if self._client.is_closed:
            raise ClassificationNetworkError("Backend client is closed")
        try:
            return self._client.post(path, files=self._multipart(files), data=data)
        except httpx.TransportError as exc:
            raise ClassificationNetworkError(f"Backend network error: {exc}") from exc

    @staticmethod
    def _multipart(files: list[UploadedFile]) -> list[tuple[str, tuple[str, bytes, str]]]:
        parts = []
        for file in files:
            mime_type = mimetypes.guess_type(file.name)[0] or "application/octet-stream"
            parts.append(("files", (file.name, file.content, mime_type)))
        return parts

    @staticmethod
    def _parse_json(path: str, raw: str) -> dict[str, Any]:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ClassificationError(f"POST {path} returned invalid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise ClassificationError(f"POST {path} response must be an object")
        return parsed
