"""Client for the image analysis service (Computer Vision "analyze" REST API).

The service is given the address of an already stored image and fetches it
itself; image bytes are never uploaded from here. Only the Description
feature is requested, which yields ranked caption candidates and tags.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from gallery.exceptions import AnalysisEmptyException, AnalysisUnavailableException
from gallery.image_service.models import AnalysisResult
from gallery.settings import settings

log = logging.getLogger(__name__)

ANALYZE_PATH = "/vision/v3.2/analyze"
KEY_HEADER = "Ocp-Apim-Subscription-Key"


class VisionClient:
    """Wraps one pooled httpx.Client; create once per app and close on shutdown."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.endpoint = (endpoint or settings.vision_endpoint or "").rstrip("/")
        self.key = key or settings.vision_key
        self._client = httpx.Client(
            timeout=timeout or settings.vision_timeout_seconds,
            transport=transport,
        )
        if not self.endpoint:
            log.warning("No vision endpoint configured; uploads will not be captioned")

    def analyze(self, image_uri: str) -> AnalysisResult:
        if not self.endpoint:
            raise AnalysisUnavailableException("Image analysis endpoint is not configured")

        headers = {KEY_HEADER: self.key} if self.key else {}
        try:
            resp = self._client.post(
                f"{self.endpoint}{ANALYZE_PATH}",
                params={"visualFeatures": "Description", "language": settings.vision_language},
                headers=headers,
                json={"url": image_uri},
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            log.error(f"Image analysis rejected with HTTP {e.response.status_code}: {e.response.text[:200]}")
            raise AnalysisUnavailableException(f"Image analysis failed with HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            log.error(f"Image analysis request failed: {e}")
            raise AnalysisUnavailableException(f"Image analysis request failed: {e}")
        except ValueError as e:
            raise AnalysisUnavailableException(f"Image analysis returned invalid JSON: {e}")

        try:
            description = data.get("description") or {}
            captions = description.get("captions") or []
            if not captions:
                raise AnalysisEmptyException()

            # Candidates arrive best-first; tags keep the service's order as-is
            first = captions[0]
            if not isinstance(first, dict) or not isinstance(first.get("text"), str):
                raise TypeError(f"caption candidate {first!r} has no text")
            tags = description.get("tags") or []
            if not isinstance(tags, list):
                raise TypeError(f"tags must be a list, got {type(tags).__name__}")
            result = AnalysisResult(caption=first["text"], tags=[str(t) for t in tags])
        except (AttributeError, TypeError, KeyError, ValidationError) as e:
            log.error(f"Image analysis returned an unexpected payload: {e}")
            raise AnalysisUnavailableException(f"Image analysis returned an unexpected payload: {e}")

        log.debug("Analyzed %s: %r, %d tags", image_uri, result.caption, len(result.tags))
        return result

    def close(self) -> None:
        self._client.close()
        log.info("Closed vision client")
