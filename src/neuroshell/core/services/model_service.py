# src/neuroshell/core/services/model_service.py
import logging
import threading
from typing import Any, Dict, List, Optional

from neuroshell.core.context.neuro_context import NeuroContext
from neuroshell.core.errors import ModelError, ServiceUnavailableError
from neuroshell.core.service_registry import Service
from neuroshell.model import ModelConfig

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
ACTIVE_KIND = "model"

# name -> (low, high); None means unbounded on that side
_FLOAT_RANGES = {
    "temperature": (0.0, 1.0),
    "top_p": (0.0, 1.0),
    "presence_penalty": (-2.0, 2.0),
    "frequency_penalty": (-2.0, 2.0),
}
_POSITIVE_INTS = ("max_tokens", "top_k")


class ModelService(Service):
    """
    In-memory catalogue of model configurations, plus the notion of the
    active model which lives in the context as `#active_model_*` variables.
    """
    service_name = "model"

    def __init__(self):
        self._ctx: Optional[NeuroContext] = None
        self._models: Dict[str, ModelConfig] = {}
        self._lock = threading.RLock()

    def initialize(self, ctx: NeuroContext) -> None:
        self._ctx = ctx

    def _require_context(self) -> NeuroContext:
        if self._ctx is None:
            raise ServiceUnavailableError("model service not initialized")
        return self._ctx

    # --- Validation ---

    @staticmethod
    def validate_name(name: str) -> None:
        if not name:
            raise ModelError("model name cannot be empty")
        if " " in name:
            raise ModelError("model name cannot contain spaces")
        if len(name) > MAX_NAME_LENGTH:
            raise ModelError(f"model name cannot exceed {MAX_NAME_LENGTH} characters")
        if "\n" in name or "\t" in name:
            raise ModelError("model name cannot contain newlines or tabs")

    @staticmethod
    def validate_parameters(parameters: Dict[str, Any]) -> None:
        for key, (low, high) in _FLOAT_RANGES.items():
            if key in parameters:
                value = parameters[key]
                if not isinstance(value, (int, float)) or not low <= value <= high:
                    raise ModelError(f"{key} must be between {low} and {high}")
        for key in _POSITIVE_INTS:
            if key in parameters:
                value = parameters[key]
                if not isinstance(value, int) or value <= 0:
                    raise ModelError(f"{key} must be positive")

    # --- Catalogue ---

    def create_model(
            self,
            name: str,
            provider: str,
            base_model: str,
            parameters: Optional[Dict[str, Any]] = None,
            description: Optional[str] = None,
    ) -> ModelConfig:
        self._require_context()
        self.validate_name(name)
        if not provider:
            raise ModelError("provider is required")
        if not base_model:
            raise ModelError("base_model is required")
        parameters = dict(parameters or {})
        self.validate_parameters(parameters)

        with self._lock:
            if any(m.name == name for m in self._models.values()):
                raise ModelError(f"model name '{name}' already exists")
            model = ModelConfig(
                name=name,
                provider=provider,
                base_model=base_model,
                parameters=parameters,
                description=description or None,
            )
            self._models[model.id] = model
        logger.info("Created model '%s' (%s/%s)", name, provider, base_model)
        return model

    def clone_model(
            self,
            source_id: str,
            name: str,
            overrides: Optional[Dict[str, Any]] = None,
            description: Optional[str] = None,
    ) -> ModelConfig:
        """Creates `name` from an existing model; `overrides` win over the source's parameters."""
        source = self.get_model(source_id)
        parameters = dict(source.parameters)
        parameters.update(overrides or {})
        if description:
            description = f"Cloned from '{source.name}': {description}"
        else:
            description = f"Cloned from model '{source.name}'"
        return self.create_model(name, source.provider, source.base_model, parameters, description)

    def get_model(self, model_id: str) -> ModelConfig:
        with self._lock:
            model = self._models.get(model_id)
        if model is None:
            raise ModelError(f"model with ID '{model_id}' not found")
        return model

    def get_model_by_name(self, name: str) -> ModelConfig:
        with self._lock:
            for model in self._models.values():
                if model.name == name:
                    return model
        raise ModelError(f"model with name '{name}' not found")

    def list_models(self) -> List[ModelConfig]:
        with self._lock:
            return sorted(self._models.values(), key=lambda m: (m.created_at, m.name))

    def find_models(self, text: str, by_id: bool = False) -> List[ModelConfig]:
        """
        Matches by ID prefix when `by_id`, else by name. An exact name match
        wins over substring matches.
        """
        models = self.list_models()
        if by_id:
            return [m for m in models if m.id.startswith(text)]
        exact = [m for m in models if m.name == text]
        if exact:
            return exact
        return [m for m in models if text.lower() in m.name.lower()]

    def delete_model(self, model_id: str) -> ModelConfig:
        with self._lock:
            model = self._models.pop(model_id, None)
        if model is None:
            raise ModelError(f"model with ID '{model_id}' not found")
        ctx = self._require_context()
        if ctx.get_active_entity_id(ACTIVE_KIND) == model_id:
            ctx.clear_active_entity(ACTIVE_KIND)
        logger.info("Deleted model '%s'", model.name)
        return model

    # --- Activation ---

    def activate_model(self, model_id: str) -> ModelConfig:
        model = self.get_model(model_id)
        self._require_context().set_active_entity(ACTIVE_KIND, {
            "id": model.id,
            "name": model.name,
            "provider": model.provider,
            "base": model.base_model,
            "param_count": str(len(model.parameters)),
        })
        logger.info("Activated model '%s'", model.name)
        return model

    def active_model(self) -> Optional[ModelConfig]:
        model_id = self._require_context().get_active_entity_id(ACTIVE_KIND)
        if not model_id:
            return None
        with self._lock:
            return self._models.get(model_id)
