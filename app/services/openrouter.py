import httpx
import json
import logging
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """The AI provider failed or returned output we cannot use"""


class OpenRouterClient:
    BASE_URL = "https://openrouter.ai/api/v1"

    # Gemini tiers - "guide" for the full procedure, "fast" for previews, "chat" for diagnosis
    MODELS = {
        "guide": "google/gemini-2.5-flash",
        "fast": "google/gemini-2.5-flash-lite",
        "chat": "google/gemini-2.5-flash",
    }

    COSTS = {
        "guide": 0.00030,
        "fast": 0.00005,
        "chat": 0.00030,
    }

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        models: Optional[dict[str, str]] = None,
        timeout: float = 30.0,
        referer: str = "https://aiautorepair.app",
        title: str = "AI Auto Repair Guide",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.models = {**self.MODELS, **(models or {})}
        self.timeout = timeout
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": referer,
            "X-Title": title,
        }

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        return cls(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            models={
                "guide": settings.guide_model,
                "fast": settings.fast_model,
                "chat": settings.chat_model,
            },
            timeout=settings.provider_timeout,
            referer=settings.site_url,
            title=settings.app_title,
            transport=transport,
        )

    async def _post(self, payload: dict) -> dict:
        """POST /chat/completions and return the first choice's message"""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/chat/completions", headers=self.headers, json=payload
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ProviderError(
                    f"OpenRouter returned {e.response.status_code}: {_error_detail(e.response)}"
                ) from e
            except httpx.HTTPError as e:
                raise ProviderError(f"OpenRouter request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError("OpenRouter returned a non-JSON body") from e

        if not isinstance(data, dict):
            raise ProviderError("OpenRouter returned an unexpected body")

        # OpenRouter reports some upstream failures inside a 200 body
        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ProviderError(f"OpenRouter error: {message}")

        choices = data.get("choices") or []
        if not choices or not choices[0].get("message"):
            raise ProviderError("OpenRouter returned no choices")
        return choices[0]["message"]

    def _model_id(self, model_key: str) -> str:
        model_id = self.models.get(model_key)
        if not model_id:
            raise ValueError(f"Unknown model key: {model_key}")
        return model_id

    async def chat_completion(
        self,
        model_key: str,
        messages: list[dict],
        temperature: float = 0.7,
        max_tokens: int = 2000,
        **kwargs,
    ) -> tuple[str, float]:
        """
        Returns: (response_text, estimated_cost)
        """
        payload = {
            "model": self._model_id(model_key),
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }
        message = await self._post(payload)

        content = message.get("content")
        if not content:
            raise ProviderError("OpenRouter returned an empty response")
        return content, self.COSTS.get(model_key, 0.0)

    async def json_completion(
        self,
        model_key: str,
        messages: list[dict],
        schema: dict,
        schema_name: str,
        temperature: float = 0.2,
        max_tokens: int = 4000,
        web_search: bool = False,
    ) -> tuple[Any, list[dict]]:
        """
        Schema-constrained completion.
        Returns: (parsed_json, citations) - citations are {"uri", "title"} dicts
        collected from web search annotations, empty unless web_search is on.
        """
        payload = {
            "model": self._model_id(model_key),
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "strict": True, "schema": schema},
            },
        }
        if web_search:
            payload["plugins"] = [{"id": "web"}]

        message = await self._post(payload)
        return parse_json_content(message.get("content") or ""), extract_citations(message)

    def start_chat(
        self, model_key: str, system_prompt: str, history: Iterable[dict] = ()
    ) -> "ChatSession":
        return ChatSession(self, model_key, system_prompt, history)


class ChatSession:
    """
    Multi-turn conversation. Nothing is kept server side between requests, the
    caller hands the transcript back and it is replayed here.
    """

    def __init__(
        self,
        client: OpenRouterClient,
        model_key: str,
        system_prompt: str,
        history: Iterable[dict] = (),
    ):
        self.client = client
        self.model_key = model_key
        self.system_prompt = system_prompt
        self.history: list[dict] = [dict(turn) for turn in history]

    def messages(self) -> list[dict]:
        return [{"role": "system", "content": self.system_prompt}, *self.history]

    async def send(self, message: str) -> str:
        outgoing = [*self.messages(), {"role": "user", "content": message}]
        reply, _ = await self.client.chat_completion(
            self.model_key, outgoing, temperature=0.4
        )
        # Only record the turn once the provider answered
        self.history.append({"role": "user", "content": message})
        self.history.append({"role": "assistant", "content": reply})
        return reply


def parse_json_content(content: str) -> Any:
    """Parse model output, tolerating ```json fences some models add anyway"""
    cleaned = content.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]
    try:
        return json.loads(cleaned.strip())
    except json.JSONDecodeError as e:
        logger.warning(f"Unparseable model output: {content[:200]!r}")
        raise ProviderError(f"Model returned invalid JSON: {e.msg}") from e


def extract_citations(message: dict) -> list[dict]:
    citations = []
    for annotation in message.get("annotations") or []:
        if annotation.get("type") != "url_citation":
            continue
        cite = annotation.get("url_citation") or {}
        if cite.get("url"):
            citations.append({"uri": cite["url"], "title": cite.get("title") or cite["url"]})
    return citations


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    except ValueError:
        pass
    return response.text[:200] or response.reason_phrase
