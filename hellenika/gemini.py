import base64
import json
import logging
import os
import re

from google import genai
from google.genai import types

from hellenika.config import TEXT_MODEL, IMAGE_MODEL

logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)

SAFETY_SETTINGS = [
    types.SafetySetting(category="HARM_CATEGORY_HARASSMENT", threshold="BLOCK_NONE"),
    types.SafetySetting(category="HARM_CATEGORY_HATE_SPEECH", threshold="BLOCK_NONE"),
    types.SafetySetting(
        category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="BLOCK_NONE"
    ),
    types.SafetySetting(
        category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="BLOCK_NONE"
    ),
]


class GenerationError(Exception):
    """Raised when the model returns nothing usable."""


def get_client():
    api_key = os.environ.get("GOOGLE_API_KEY")
    if not api_key:
        raise GenerationError("Google API Key missing")
    return genai.Client(api_key=api_key)


def strip_fences(text: str) -> str:
    """Removes Markdown code fences around a JSON payload."""
    clean = text.strip()
    if clean.startswith("```json"):
        clean = clean[7:]
    if clean.startswith("```"):
        clean = clean[3:]
    if clean.endswith("```"):
        clean = clean[:-3]
    return clean.strip()


def call_gemini(prompt_text: str):
    """
    Sends a prompt to the text model and returns the parsed JSON payload.
    """
    client = get_client()

    try:
        response = client.models.generate_content(
            model=TEXT_MODEL,
            contents=prompt_text,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                safety_settings=SAFETY_SETTINGS,
            ),
        )
    except Exception as e:
        logger.error(f"Gemini Error: {e}")
        raise

    if not response.text:
        raise GenerationError("Empty response from AI")

    clean = strip_fences(response.text)
    try:
        return json.loads(clean)
    except json.JSONDecodeError as e:
        logger.error(f"Bad JSON Content: {clean[:500]}...")
        raise GenerationError(f"AI returned invalid JSON: {e}")


def parse_data_uri(uri: str):
    match = DATA_URI_RE.match(uri or "")
    if not match:
        raise ValueError("Expected a 'data:<mimetype>;base64,<data>' URI")
    return match.group("mime"), base64.b64decode(match.group("data"))


def to_data_uri(mime_type: str, data: bytes) -> str:
    encoded = base64.b64encode(data).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def generate_image(prompt_text: str, reference_uri: str = None) -> str:
    """
    Generates one image and returns it as a data URI.

    When reference_uri is given, that image is sent ahead of the text so
    the model can keep characters and style consistent with it.
    """
    client = get_client()

    contents = []
    if reference_uri:
        mime_type, data = parse_data_uri(reference_uri)
        contents.append(types.Part.from_bytes(data=data, mime_type=mime_type))
    contents.append(prompt_text)

    try:
        response = client.models.generate_content(
            model=IMAGE_MODEL,
            contents=contents,
            config=types.GenerateContentConfig(
                # Image-only modality is rejected by the model
                response_modalities=["TEXT", "IMAGE"],
            ),
        )
    except Exception as e:
        logger.error(f"Gemini Image Error: {e}")
        raise

    for candidate in response.candidates or []:
        content = candidate.content
        if not content or not content.parts:
            continue
        for part in content.parts:
            inline = getattr(part, "inline_data", None)
            if inline and inline.data:
                return to_data_uri(inline.mime_type or "image/png", inline.data)

    raise GenerationError("No image was generated.")
