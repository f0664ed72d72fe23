#Purpose: The narrative-generation "adapter/client".
#Sole responsibility: talk to an OpenAI-compatible chat-completions endpoint via HTTP
#and return the generated text.
#Encapsulates provider-specific details:
#base URL per provider (OpenAI cloud, local Ollama, DeepSeek)
#auth headers
#timeouts / error handling
#parsing response JSON into plain text
#It should not contain scheduling rules or prompt wording.


from dotenv import load_dotenv
import os
from typing import Any, Dict, List, Optional
import requests

# Read provider settings from environment
# Example in .env:
# OPENAI_API_KEY=sk-...
# OLLAMA_URL=http://localhost:11434/v1
# ADVISORY_MODEL=gpt-4o-mini
# ADVISORY_TIMEOUT_SEC=5
load_dotenv()

PROVIDER_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "ollama": os.getenv("OLLAMA_URL", "http://localhost:11434/v1"),
    "deepseek": "https://api.deepseek.com/v1",
}

PROVIDER_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
}

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "ollama": os.getenv("OLLAMA_MODEL", "llama3.1"),
    "deepseek": "deepseek-chat",
}

DEFAULT_TIMEOUT_SEC = float(os.getenv("ADVISORY_TIMEOUT_SEC", "5"))

Message = Dict[str, str]


class ProviderError(Exception):
    """Raised when the narrative provider cannot produce text (network, auth, rate limit, bad payload)."""
    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ChatCompletionsProvider:
    """
    Chat-completions client

    Sole responsibility:
    - POST messages to {base_url}/chat/completions
    - Return the first choice's text

    """
    def __init__(
        self,
        provider: str = "openai",
        *,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        max_tokens: int = 150,
        temperature: float = 0.7,
        session: Optional[requests.Session] = None,
    ):
        provider = (provider or "openai").lower()
        if provider not in PROVIDER_BASE_URLS:
            raise ValueError(f"Unknown advisory provider {provider!r}")

        self.provider = provider
        self.base_url = (base_url or PROVIDER_BASE_URLS[provider]).rstrip("/")
        self.model = model or os.getenv("ADVISORY_MODEL") or DEFAULT_MODELS[provider]
        self.timeout = timeout #seconds to wait for the provider before giving up
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.session = session or requests.Session()

        key_env = PROVIDER_KEY_ENV.get(provider)
        self.api_key = api_key or (os.getenv(key_env) if key_env else None)

        # Ollama ignores auth; cloud providers need a real key
        if key_env and (not self.api_key or self.api_key.startswith("your-")):
            raise ProviderError(f"{key_env} not configured for provider {provider!r}")

    #----------------
    # Internal helpers
    #----------------
    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    #----------------
    # Public methods
    #----------------
    def chat(self, messages: List[Message]) -> str:
        """
        calls {base_url}/chat/completions and returns the generated text ("" if the model said nothing)
        """
        url = f"{self.base_url}/chat/completions"
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        try:
            response = self.session.post(
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise ProviderError(f"{self.provider} request timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise ProviderError(f"Cannot reach {self.provider} at {self.base_url}: {exc}") from exc

        if response.status_code == 401:
            raise ProviderError(f"{self.provider} rejected the API key", status=401)
        if response.status_code == 429:
            raise ProviderError(f"{self.provider} rate limit exceeded", status=429)
        if response.status_code >= 400:
            raise ProviderError(
                f"{self.provider} error {response.status_code}: {response.text[:200]}",
                status=response.status_code,
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"].get("content") or ""
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            raise ProviderError(f"Unexpected {self.provider} response payload") from exc

        return content.strip()


def provider_for_product(product, **kwargs: Any) -> ChatCompletionsProvider:
    """
    Build a client from a product's advisory settings (ai_provider / ai_model).
    """
    return ChatCompletionsProvider(
        product.ai_provider or "openai",
        model=product.ai_model,
        **kwargs,
    )
