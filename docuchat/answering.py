import asyncio
import logging
from typing import Dict, List, Protocol

import openai
import requests

from . import config
from .errors import AnsweringError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
You are a friendly and helpful AI assistant.
You must answer only using the provided document text below.
If the answer is not found in the documents, take inferences and try to answer.

--- DOCUMENT CONTENT ---
{knowledge_base}
""".strip()


class AnsweringClient(Protocol):
    async def answer(self, knowledge_base: str, messages: List[Dict[str, str]]) -> str:
        ...


class EndpointAnsweringClient:
    """
    Sends the knowledge base and transcript to an HTTP answering endpoint.

    Request body: {"knowledgeBase": str, "messages": [{"role", "content"}]}
    Response body on 2xx: {"reply": str}
    """

    def __init__(self, url: str = None, timeout: float = None):
        self.url = url or config.ANSWER_ENDPOINT_URL
        self.timeout = timeout or config.ANSWER_TIMEOUT

    async def answer(self, knowledge_base: str, messages: List[Dict[str, str]]) -> str:
        payload = {
            "knowledgeBase": knowledge_base,
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
        }
        return await asyncio.to_thread(self._post, payload)

    def _post(self, payload: dict) -> str:
        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AnsweringError(f"Answering request failed: {str(e)}") from e

        if not 200 <= response.status_code < 300:
            raise AnsweringError(f"API error ({response.status_code}): {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise AnsweringError("Answering endpoint returned invalid JSON") from e

        reply = data.get("reply") if isinstance(data, dict) else None
        if not isinstance(reply, str):
            raise AnsweringError("Answering endpoint response has no reply")
        return reply


class OpenAIAnsweringClient:
    """Answers directly through the OpenAI chat completions API."""

    def __init__(self, api_key: str = None, model: str = None):
        # The client is created on first use so a missing key only fails the turn
        self.api_key = api_key or config.OPENAI_API_KEY
        self.model = model or config.LLM_MODEL
        self._client = None

    def _ensure_client(self):
        if self._client is None:
            if not self.api_key:
                raise AnsweringError("OPENAI_API_KEY not set.")
            self._client = openai.OpenAI(api_key=self.api_key)
        return self._client

    @staticmethod
    def build_messages(knowledge_base: str, messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
        prompt = SYSTEM_PROMPT.format(knowledge_base=knowledge_base)
        return [{"role": "system", "content": prompt}] + [
            {"role": m["role"], "content": m["content"]} for m in messages
        ]

    async def answer(self, knowledge_base: str, messages: List[Dict[str, str]]) -> str:
        return await asyncio.to_thread(self._complete, self.build_messages(knowledge_base, messages))

    def _complete(self, messages: List[Dict[str, str]]) -> str:
        client = self._ensure_client()
        try:
            completion = client.chat.completions.create(model=self.model, messages=messages)
        except openai.RateLimitError as e:
            raise AnsweringError("OpenAI API quota exceeded while generating the answer.") from e
        except openai.AuthenticationError as e:
            raise AnsweringError("Invalid OpenAI API key. Please check your OPENAI_API_KEY environment variable.") from e
        except openai.APIError as e:
            raise AnsweringError(f"OpenAI API error while generating answer: {str(e)}") from e

        content = completion.choices[0].message.content
        if not content:
            raise AnsweringError("OpenAI returned an empty answer.")
        return content.strip()


ANSWERING_BACKENDS = {
    "endpoint": EndpointAnsweringClient,
    "openai": OpenAIAnsweringClient,
}


def get_answering_client(backend: str = None) -> AnsweringClient:
    selected = backend or config.ANSWERING_BACKEND
    if selected not in ANSWERING_BACKENDS:
        raise ValueError(
            f"Unknown answering backend '{selected}'. "
            f"Available backends: {', '.join(ANSWERING_BACKENDS)}."
        )
    logger.info("Using '%s' answering backend", selected)
    return ANSWERING_BACKENDS[selected]()
