"""Client for OCR-capable chat-completion APIs (DeepSeek-OCR and compatible)."""

from pathlib import Path
from typing import Literal, Optional, Union

import httpx
from PIL import Image
from pydantic import BaseModel, ValidationError

from xtract.config import Config
from xtract.exceptions import (
    ApiError,
    ApiTimeoutError,
    NoChoiceError,
    ParseError,
    RequestError,
)
from xtract.image import encode_image_to_base64, load_image, to_data_url
from xtract.logger import Timer, get_logger

logger = get_logger(__name__)

GROUNDING_MARKER = "<|grounding|>"
MARKDOWN_PROMPT = (
    f"{GROUNDING_MARKER}Convert this document to markdown, preserving layout and structure."
)
TEXT_PROMPT = f"{GROUNDING_MARKER}Extract all text from this document."

REQUEST_TIMEOUT_SECONDS = 300.0
UNREADABLE_BODY_MESSAGE = "Failed to read error response body"


class ImageUrl(BaseModel):
    url: str


class ImageUrlPart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class Message(BaseModel):
    role: str
    # The model expects the image before the prompt
    content: list[Union[ImageUrlPart, TextPart]]


class ChatCompletionRequest(BaseModel):
    model: str
    messages: list[Message]
    max_tokens: int
    temperature: float


class ResponseMessage(BaseModel):
    content: str


class Choice(BaseModel):
    message: ResponseMessage


class ChatCompletionResponse(BaseModel):
    choices: list[Choice]


class OCRClient:
    """Sends one image per request to ``{api_endpoint}/chat/completions``.

    A single HTTP client is reused for every call made through this instance.
    Requests are never retried; a request that runs past the timeout fails.
    """

    def __init__(self, config: Config, http_client: Optional[httpx.Client] = None):
        """Initialize client.

        Args:
            config: Settings snapshot used for every request
            http_client: Preconfigured HTTP client. If None, one with a 300s timeout
                is created and owned by this instance.
        """
        self.config = config
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.Client(
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS)
        )

    def __enter__(self) -> "OCRClient":
        return self

    def __exit__(self, *args):
        self.close()

    def close(self) -> None:
        if self._owns_http_client:
            self._http_client.close()

    @property
    def endpoint_url(self) -> str:
        return f"{self.config.ocr.api_endpoint.rstrip('/')}/chat/completions"

    def default_prompt(self) -> str:
        if self.config.extraction.output_format == "markdown":
            return MARKDOWN_PROMPT
        return TEXT_PROMPT

    def build_request(self, base64_image: str, prompt: Optional[str] = None) -> ChatCompletionRequest:
        """Build the chat-completion request for one base64 PNG payload."""
        user_prompt = prompt if prompt is not None else self.default_prompt()

        return ChatCompletionRequest(
            model=self.config.ocr.model,
            messages=[
                Message(
                    role="user",
                    content=[
                        ImageUrlPart(image_url=ImageUrl(url=to_data_url(base64_image))),
                        TextPart(text=user_prompt),
                    ],
                )
            ],
            max_tokens=self.config.ocr.max_tokens,
            temperature=self.config.ocr.temperature,
        )

    def extract_from_image(self, image_path: Union[str, Path], prompt: Optional[str] = None) -> str:
        """Extract text from an image file.

        Raises:
            LoadError: If the image cannot be loaded
            EncodeError: If the image cannot be encoded as PNG
            OCRError: If the API call fails (see ``extract_from_base64``)
        """
        logger.info("Extracting text from image", extra_data={"path": image_path})
        image = load_image(image_path)
        return self.extract_from_pil_image(image, prompt)

    def extract_from_pil_image(self, image: Image.Image, prompt: Optional[str] = None) -> str:
        """Extract text from an already decoded image."""
        return self.extract_from_base64(encode_image_to_base64(image), prompt)

    def extract_from_base64(self, base64_image: str, prompt: Optional[str] = None) -> str:
        """Extract text from a base64-encoded PNG.

        Args:
            base64_image: PNG bytes as standard base64, no data URL prefix
            prompt: Instruction for the model. If None, picks the markdown or
                plain-text prompt from the configured output format.

        Returns:
            Content of the first choice in the response

        Raises:
            ApiTimeoutError: If no response arrives within the timeout
            RequestError: If the request cannot be sent
            ApiError: If the API returns a non-success status
            ParseError: If the response body is not a valid chat completion
            NoChoiceError: If the response contains no choices
        """
        request = self.build_request(base64_image, prompt)
        url = self.endpoint_url

        logger.debug(
            "Sending OCR request",
            extra_data={
                "url": url,
                "model": request.model,
                "max_tokens": request.max_tokens,
                "payload_length": len(base64_image),
            },
        )

        try:
            with Timer("ocr_request") as timer:
                response = self._http_client.post(url, json=request.model_dump())
        except httpx.TimeoutException as exc:
            logger.error(
                "OCR API request timed out",
                extra_data={"url": url, "timeout_s": REQUEST_TIMEOUT_SECONDS},
            )
            raise ApiTimeoutError(f"OCR API request to {url} timed out: {exc}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error(
                "Failed to send request to OCR API",
                extra_data={"url": url, "error_type": type(exc).__name__, "error": str(exc)},
            )
            raise RequestError(f"Failed to send request to OCR API at {url}: {exc}") from exc

        if not response.is_success:
            body = self._read_error_body(response)
            logger.error(
                "OCR API returned an error status",
                extra_data={
                    "status_code": response.status_code,
                    "request_time_ms": timer.get_elapsed_ms(),
                },
            )
            raise ApiError(response.status_code, body, reason=response.reason_phrase)

        try:
            completion = ChatCompletionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ParseError(f"Failed to parse OCR API response: {exc}") from exc

        if not completion.choices:
            raise NoChoiceError("No response from OCR API: choices list is empty")

        text = completion.choices[0].message.content

        logger.info(
            "Successfully extracted text",
            extra_data={
                "character_count": len(text),
                "request_time_ms": timer.get_elapsed_ms(),
            },
        )
        return text

    @staticmethod
    def _read_error_body(response: httpx.Response) -> str:
        try:
            return response.text
        except (httpx.HTTPError, UnicodeDecodeError, LookupError):
            return UNREADABLE_BODY_MESSAGE
