"""Minimal Replicate client for text-to-image predictions.

Runs a model prediction with ``Prefer: wait``, polls if the prediction is still
running when the wait window closes, then downloads the first output and
returns it base64-encoded.
"""

import asyncio
import base64

import httpx
import structlog

logger = structlog.get_logger(__name__)

REPLICATE_API_URL = "https://api.replicate.com/v1"
_TERMINAL_STATUSES = {"succeeded", "failed", "canceled"}


class ReplicateError(Exception):
    """Raised when a prediction fails or returns no usable output."""


def _prediction(response: httpx.Response) -> dict:
    """Decode a prediction body; anything but a JSON object is a ReplicateError."""
    try:
        prediction = response.json()
    except ValueError as exc:
        raise ReplicateError(f"Replicate returned a non-JSON body (HTTP {response.status_code})") from exc
    if not isinstance(prediction, dict):
        raise ReplicateError(f"Replicate returned an unexpected body: {type(prediction).__name__}")
    return prediction


def _poll_url(prediction: dict) -> str:
    try:
        return prediction["urls"]["get"]
    except (KeyError, TypeError) as exc:
        raise ReplicateError(f"Prediction {prediction.get('id')} is {prediction.get('status')} but has no poll URL") from exc


class ReplicateImageClient:
    def __init__(
        self,
        api_token: str,
        model: str = "black-forest-labs/flux-schnell",
        timeout: float = 120.0,
        poll_interval: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_token = api_token
        self.model = model
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
            "Prefer": "wait",
        }

    async def generate_base64(self, prompt: str) -> str:
        """Run the model on ``prompt`` and return the first image as base64.

        Raises:
            ReplicateError: If the prediction does not succeed, has no output or the body is malformed
            httpx.HTTPError: On transport failures or non-2xx responses
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                f"{REPLICATE_API_URL}/models/{self.model}/predictions",
                headers=self._headers(),
                json={"input": {"prompt": prompt}},
            )
            response.raise_for_status()
            prediction = _prediction(response)

            while prediction.get("status") not in _TERMINAL_STATUSES:
                await asyncio.sleep(self.poll_interval)
                response = await client.get(_poll_url(prediction), headers=self._headers())
                response.raise_for_status()
                prediction = _prediction(response)

            if prediction["status"] != "succeeded":
                raise ReplicateError(f"Prediction {prediction.get('id')} {prediction['status']}: {prediction.get('error')}")

            output = prediction.get("output")
            image_url = output[0] if isinstance(output, list) and output else output
            if not isinstance(image_url, str) or not image_url:
                raise ReplicateError("No image output received from Replicate")

            image_response = await client.get(image_url)
            image_response.raise_for_status()

        logger.info("replicate_image_generated", model=self.model, bytes=len(image_response.content))
        return base64.b64encode(image_response.content).decode("ascii")
