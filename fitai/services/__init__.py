"""Domain services and external API integrations"""
from .llm_service import LLMService
from .asaas_service import AsaasService

__all__ = ['LLMService', 'AsaasService']
