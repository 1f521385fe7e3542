import requests

from handwriting_utils import utils

logger = utils.setup_logging()

DEFAULT_API_URL = "http://api:8000"

EXTRACT_FAILED = "Failed to extract text."
TRANSFORM_FAILED = "Failed to process text."


class ApiError(Exception):
    """Error message to show the user as-is."""


def _error_message(resp, fallback: str) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return fallback
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return fallback


class ApiClient:
    """
    Calls /api/extract and /api/summarize for the Streamlit page.
    Every failure, including transport errors, becomes an ApiError.
    """

    def __init__(self, base_url: str = None, timeout: float = 120):
        self.base_url = (base_url or utils.get_env("API_URL", DEFAULT_API_URL)).rstrip("/")
        self.timeout = timeout

    def _post(self, path: str, fallback: str, **kwargs) -> str:
        url = f"{self.base_url}{path}"
        try:
            resp = requests.post(url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error("Cannot reach API %s: %s", url, e)
            raise ApiError(str(e) or fallback)

        if not resp.ok:
            message = _error_message(resp, fallback)
            logger.error("API %s returned %s: %s", url, resp.status_code, message)
            raise ApiError(message)

        try:
            data = resp.json()
        except ValueError:
            raise ApiError(fallback)
        return data.get("text", "") if isinstance(data, dict) else ""

    def extract(self, raw: bytes, filename: str, content_type: str, language: str = "auto") -> str:
        files = {"file": (filename, raw, content_type)}
        return self._post(
            "/api/extract", EXTRACT_FAILED, files=files, data={"language": language}
        )

    def transform(self, text: str, mode: str) -> str:
        return self._post(
            "/api/summarize", TRANSFORM_FAILED, json={"text": text, "mode": mode}
        )
