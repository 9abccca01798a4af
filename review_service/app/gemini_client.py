"""
GeminiReviewClient — the one network call in the service.
Plain request/response: no retry, no backoff, transport-default timeout.

The request is built as a GenerateContentRequest and sent on the SDK's async
GenerativeService client. GenerativeModel.generate_content_async rebuilds tools
itself and drops google_search, which would leave the model ungrounded.
"""
import logging
import google.generativeai as genai
from google.generativeai import client as genai_client
from google.generativeai.types import generation_types

from .config import (
    GEMINI_MODEL,
    TEMPERATURE,
    TOP_P,
    TOP_K,
    MAX_OUTPUT_TOKENS,
)
from .prompts import SYSTEM_INSTRUCTION

logger = logging.getLogger("GeminiClient")


def search_tool() -> genai.protos.Tool:
    """Google Search grounding tool, so the model can look the book up."""
    return genai.protos.Tool(google_search=genai.protos.Tool.GoogleSearch())


def generation_config() -> genai.protos.GenerationConfig:
    return genai.protos.GenerationConfig(
        temperature=TEMPERATURE,
        top_p=TOP_P,
        top_k=TOP_K,
        max_output_tokens=MAX_OUTPUT_TOKENS,
    )


def _text_content(text: str, role: str | None = None) -> genai.protos.Content:
    part = genai.protos.Part(text=text)
    if role:
        return genai.protos.Content(role=role, parts=[part])
    return genai.protos.Content(parts=[part])


class GeminiReviewClient:
    model_name = GEMINI_MODEL
    search_enabled = True

    def __init__(self, api_key: str, model_name: str = GEMINI_MODEL):
        genai.configure(api_key=api_key)
        self.model_name = model_name

    def build_request(self, prompt: str) -> genai.protos.GenerateContentRequest:
        # Built per request; nothing is shared between calls
        return genai.protos.GenerateContentRequest(
            model=f"models/{self.model_name}",
            contents=[_text_content(prompt, role="user")],
            system_instruction=_text_content(SYSTEM_INSTRUCTION),
            generation_config=generation_config(),
            tools=[search_tool()],
        )

    async def generate(self, prompt: str):
        """
        Input: the user-turn prompt from build_prompt()
        Output: the SDK's GenerateContentResponse, untouched (see extraction.py)
        Errors from the SDK propagate as-is; the request handler classifies them.
        """
        request = self.build_request(prompt)
        logger.debug(f"Calling {self.model_name} (prompt {len(prompt)} chars)")
        service = genai_client.get_default_generative_async_client()
        response = await service.generate_content(request)
        return generation_types.GenerateContentResponse.from_response(response)
