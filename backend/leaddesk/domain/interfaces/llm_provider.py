"""
LLM Provider Interface
Abstract base class for the classifier behind the note auditor
"""
from abc import ABC, abstractmethod
from typing import List, Optional
from leaddesk.domain.models.conversation import Message


class LLMProvider(ABC):
    """Abstract base class for Language Model providers"""
    
    @abstractmethod
    async def initialize(self, config: dict) -> None:
        """Initialize the provider with configuration"""
        pass
    
    @abstractmethod
    async def complete(
        self,
        messages: List[Message],
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> str:
        """
        Single chat completion
        
        Args:
            messages: User turns to send
            system_prompt: System instructions
            temperature: Randomness
            max_tokens: Max response length
            **kwargs: Provider options such as response_format
            
        Returns:
            Completion text ("" if the provider returned nothing)
        """
        pass
    
    @abstractmethod
    async def cleanup(self) -> None:
        """Release resources"""
        pass
    
    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name"""
        pass
