"""Services for the proposal pipeline engine."""

# Note: StageWorkflowController depends on app.layers, import it directly
# Use: from app.services.workflow import get_workflow_controller

from .file_storage import FileStorage, get_file_storage
from .health import ApiHealthRegistry, InMemoryKeyValueStore, get_health_registry
from .usage_tracker import UsageTracker, get_usage_tracker
from .knowledge import KnowledgeService, get_knowledge_service
from .orchestrator import ProviderOrchestrator, OrchestrationResult, get_orchestrator
from .prompt_builder import PromptBuilder
from .fallback import FallbackResponder
from .assets import AssetService, absolutize_urls
from .email_sender import EmailSender, ResendEmailSender

__all__ = [
    "FileStorage",
    "get_file_storage",
    "ApiHealthRegistry",
    "InMemoryKeyValueStore",
    "get_health_registry",
    "UsageTracker",
    "get_usage_tracker",
    "KnowledgeService",
    "get_knowledge_service",
    "ProviderOrchestrator",
    "OrchestrationResult",
    "get_orchestrator",
    "PromptBuilder",
    "FallbackResponder",
    "AssetService",
    "absolutize_urls",
    "EmailSender",
    "ResendEmailSender",
]
