"""
Groq LLM Provider Implementation
Fast inference for the note auditor's classification call

Following Groq's prompting guidelines:
- Role channels (system, user)
- Low temperature for classification
- JSON mode for a single structured verdict
"""
import os
from typing import List, Optional
from groq import AsyncGroq
from leaddesk.domain.interfaces.llm_provider import LLMProvider
from leaddesk.domain.models.conversation import Message


def _resolved(value: Optional[str]) -> Optional[str]:
    """Treat unsubstituted ${VAR} placeholders as missing"""
    if not value or (value.startswith("${") and value.endswith("}")):
        return None
    return value


class GroqLLMProvider(LLMProvider):
    """
    Groq LLM provider
    
    Recommended models for short classification prompts:
    - llama-3.1-8b-instant: fastest, good enough for rubric checks
    - llama-3.3-70b-versatile: better judgement, slower
    """
    
    def __init__(self):
        self._client: Optional[AsyncGroq] = None
        self._config: dict = {}
        self._model: str = "llama-3.1-8b-instant"
        self._temperature: float = 0.0  # Deterministic verdicts
        self._max_tokens: int = 120
    
    async def initialize(self, config: dict) -> None:
        """Initialize Groq client with configuration"""
        self._config = config
        api_key = _resolved(config.get("api_key")) or os.getenv("GROQ_API_KEY")
        
        if not api_key:
            raise ValueError("Groq API key not found in config or environment")
        
        self._client = AsyncGroq(api_key=api_key)
        
        self._model = config.get("model", self._model)
        self._temperature = config.get("temperature", self._temperature)
        self._max_tokens = config.get("max_tokens", self._max_tokens)
    
    async def complete(
        self,
        messages: List[Message],
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> str:
        """
        One chat completion from Groq
        
        Args:
            messages: User turns to send
            system_prompt: System instructions
            temperature: Randomness (0.0-2.0)
            max_tokens: Maximum response length
            **kwargs: model, response_format, seed
        
        Returns:
            Completion text
        """
        if not self._client:
            raise RuntimeError("Groq client not initialized. Call initialize() first.")
        
        temperature = temperature if temperature is not None else self._temperature
        max_tokens = max_tokens if max_tokens is not None else self._max_tokens
        
        if not 0.0 <= temperature <= 2.0:
            raise ValueError(f"Temperature must be between 0.0 and 2.0, got {temperature}")
        
        groq_messages = []
        if system_prompt:
            groq_messages.append({
                "role": "system",
                "content": system_prompt
            })
        for msg in messages:
            groq_messages.append({
                "role": msg.role.value,
                "content": msg.content
            })
        
        request = {
            "model": kwargs.get("model", self._model),
            "messages": groq_messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "seed": kwargs.get("seed", None),
        }
        if kwargs.get("response_format"):
            request["response_format"] = kwargs["response_format"]
        
        try:
            completion = await self._client.chat.completions.create(**request)
        except Exception as e:
            raise RuntimeError(f"Groq LLM request failed: {str(e)}")
        
        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""
    
    async def cleanup(self) -> None:
        """Release resources"""
        if self._client:
            await self._client.close()
            self._client = None
    
    @property
    def name(self) -> str:
        """Provider name"""
        return "groq"
    
    def __repr__(self) -> str:
        return f"GroqLLMProvider(model={self._model}, temp={self._temperature})"
