"""
OpenAI-backed model service and request dispatcher for Polyglot Tutor.

This module handles:
- Building the single OpenAI client from Settings
- One-shot completions, free text or schema-constrained JSON
- Chat sessions seeded with a system instruction

The client is created once by the application entry point and injected
into the dispatcher and chat sessions. Nothing here is a module-level
singleton.
"""

import json
from typing import Any, Dict, List, Optional

from openai import OpenAI

from .config import Settings
from .logger import Timer, logger
from .schemas import MalformedResponseError, ResponseSchema


def create_client(settings: Settings) -> OpenAI:
    """
    Build the OpenAI client for the application.

    max_retries=0 keeps every dispatch to exactly one round trip; the SDK
    would otherwise retry transient failures on its own.
    """
    logger.env("Initializing OpenAI client...")
    kwargs: Dict[str, Any] = {"api_key": settings.api_key, "max_retries": 0}
    if settings.base_url:
        kwargs["base_url"] = settings.base_url
        logger.env(f"Using custom endpoint: {settings.base_url}")
    client = OpenAI(**kwargs)
    logger.env_success("OpenAI client initialized successfully")
    return client


# ---------------------------------------------------------------------------
# Remote model service
# ---------------------------------------------------------------------------

class OpenAIChat:
    """
    A running conversation with the model.

    The message history is the remote side of the conversation: it is kept
    here, next to the client, and only grows when a turn succeeds.
    """

    def __init__(self, client: OpenAI, model: str, system_instruction: str) -> None:
        self._client = client
        self._model = model
        self._messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_instruction},
        ]

    def send_message(self, message: str) -> Optional[str]:
        outgoing = self._messages + [{"role": "user", "content": message}]

        logger.api_call("chat.completions.create (chat turn)", model=self._model)
        with Timer() as timer:
            completion = self._client.chat.completions.create(
                model=self._model,
                messages=outgoing,
                temperature=0.7,
            )
        logger.api_response("chat.completions.create", duration_ms=timer.duration_ms)

        reply = completion.choices[0].message.content
        if reply:
            self._messages = outgoing + [{"role": "assistant", "content": reply}]
        return reply


class OpenAIModelService:
    """Adapter exposing generate_content / create_chat over an OpenAI client."""

    def __init__(self, client: OpenAI) -> None:
        self._client = client

    def generate_content(
        self,
        model: str,
        prompt: str,
        response_schema: Optional[ResponseSchema] = None,
    ) -> Optional[str]:
        extra_args: Dict[str, Any] = {}
        if response_schema is not None:
            extra_args["response_format"] = response_schema.response_format()

        completion = self._client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            **extra_args,
        )
        return completion.choices[0].message.content

    def create_chat(self, model: str, system_instruction: str) -> OpenAIChat:
        return OpenAIChat(self._client, model, system_instruction)


# ---------------------------------------------------------------------------
# Request dispatcher
# ---------------------------------------------------------------------------

class RequestDispatcher:
    """
    Sends one prompt to the model service per call.

    generate(prompt) returns the raw text ("" when the model returned
    nothing). generate(prompt, schema) returns the parsed dataclass, or
    raises MalformedResponseError if the payload is empty or unparsable.
    Service errors propagate to the caller unchanged.
    """

    def __init__(self, service: Any, model: str) -> None:
        self.service = service
        self.model = model

    def generate(self, prompt: str, schema: Optional[ResponseSchema] = None) -> Any:
        endpoint = f"generate_content ({schema.name})" if schema else "generate_content"
        logger.api_call(endpoint, model=self.model)
        logger.debug(f"Prompt length: {len(prompt)} chars")

        with Timer() as timer:
            raw = self.service.generate_content(self.model, prompt, schema)
        logger.api_response(endpoint, duration_ms=timer.duration_ms)

        if schema is None:
            return raw or ""

        if not raw:
            raise MalformedResponseError(f"empty response for {schema.name}")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"{schema.name} response is not valid JSON: {e}") from e

        result = schema.parse(data)
        logger.success(f"Parsed {schema.name} response")
        return result
