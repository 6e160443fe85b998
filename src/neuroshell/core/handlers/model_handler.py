# src/neuroshell/core/handlers/model_handler.py
import logging
from typing import Any, Dict, List

from neuroshell.core.errors import CommandError
from neuroshell.core.handlers.base import Command, arg_bool, arg_str
from neuroshell.core.services.model_service import ModelService
from neuroshell.core.services.stack_service import StackService
from neuroshell.core.services.variable_service import VariableService
from neuroshell.model import ArgValue, ModelConfig

logger = logging.getLogger(__name__)

NEW_USAGE = """
Usage:
  \\model-new[provider=openai, base_model=gpt-4, temperature=0.7, ...] name
  \\model-new[from_id=<id prefix>, temperature=0.2] name

Options:
  provider           LLM provider (required unless from_id is given)
  base_model         Provider model name (required unless from_id is given)
  from_id            Clone an existing model; other options override its parameters
  description        Free-text description
  temperature        0.0 - 1.0
  max_tokens         Positive integer
  top_p              0.0 - 1.0
  top_k              Positive integer
  presence_penalty   -2.0 - 2.0
  frequency_penalty  -2.0 - 2.0
  activate           true to make the new model active
Any other option is stored as a string parameter.
""".strip()

ACTIVATE_USAGE = """
Usage:
  \\model-activate name        Activate by name (exact, else substring match)
  \\model-activate[id=true] 1a2b  Activate by ID prefix
""".strip()

DELETE_USAGE = """
Usage:
  \\model-delete name
  \\model-delete[id=true] 1a2b
""".strip()

_FLOAT_PARAMS = ("temperature", "top_p", "presence_penalty", "frequency_penalty")
_INT_PARAMS = ("max_tokens", "top_k")
_RESERVED = ("provider", "base_model", "description", "from_id", "activate")


def collect_parameters(args: Dict[str, ArgValue]) -> Dict[str, Any]:
    """Converts the numeric options and keeps every other unreserved option as a string."""
    parameters: Dict[str, Any] = {}
    for key in args:
        if key in _RESERVED:
            continue
        raw = arg_str(args, key).strip()
        if key in _FLOAT_PARAMS:
            try:
                parameters[key] = float(raw)
            except ValueError:
                raise CommandError(f"invalid {key} value: {raw}") from None
        elif key in _INT_PARAMS:
            try:
                parameters[key] = int(raw)
            except ValueError:
                raise CommandError(f"invalid {key} value: {raw}") from None
        else:
            parameters[key] = raw
    return parameters


def find_single_model(models: ModelService, text: str, by_id: bool) -> ModelConfig:
    search_type = "ID prefix" if by_id else "name"
    matches = models.find_models(text, by_id=by_id)
    if not matches:
        lines = [f"No models found matching {search_type} '{text}'.", "", "Available models:"]
        for model in models.list_models():
            lines.append(f"  {model.name} (ID: {model.short_id()})")
        raise CommandError("\n".join(lines))
    if len(matches) > 1:
        lines = [f"Multiple models match {search_type} '{text}'. Please be more specific:"]
        for model in matches:
            lines.append(f"  {model.name} (ID: {model.short_id()}, provider: {model.provider})")
        raise CommandError("\n".join(lines))
    return matches[0]


class ModelNewCommand(Command):
    """Creates a named model configuration, from a provider or by cloning."""
    name = "model-new"
    description = "Create a new model configuration."
    usage = NEW_USAGE

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        models = services.require(ModelService)
        variables = services.require(VariableService)

        name = input_text.strip()
        if not name:
            raise CommandError(f"model name is required\n\n{NEW_USAGE}")

        description = arg_str(args, "description") or None
        parameters = collect_parameters(args)
        from_id = arg_str(args, "from_id").strip()

        if from_id:
            if arg_str(args, "provider") or arg_str(args, "base_model"):
                raise CommandError(f"cannot combine from_id with provider/base_model options\n\n{NEW_USAGE}")
            source = find_single_model(models, from_id, by_id=True)
            model = models.clone_model(source.id, name, parameters, description)
            print(f"Created model '{model.name}' (ID: {model.short_id()}) from base model '{source.name}'")
        else:
            provider = arg_str(args, "provider").strip()
            base_model = arg_str(args, "base_model").strip()
            if not provider:
                raise CommandError(f"provider is required for provider-based creation\n\n{NEW_USAGE}")
            if not base_model:
                raise CommandError(f"base_model is required for provider-based creation\n\n{NEW_USAGE}")
            model = models.create_model(name, provider, base_model, parameters, description)

        facts = {
            "#model_id": model.id,
            "#model_name": model.name,
            "#model_provider": model.provider,
            "#model_base": model.base_model,
            "#model_created": model.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            "#model_param_count": str(len(model.parameters)),
        }
        if model.description:
            facts["#model_description"] = model.description
        variables.replace_system_variables("#model_", facts)

        output = (
            f"Created model '{model.name}' (ID: {model.short_id()}, "
            f"Provider: {model.provider}, Base: {model.base_model})"
        )
        variables.set_system_variable("_output", output)
        print(output)

        if arg_bool(args, "activate"):
            services.require(StackService).push_command(f"\\silent \\model-activate[id=true] {model.id}")


class ModelActivateCommand(Command):
    name = "model-activate"
    description = "Make a model configuration the active one."
    usage = ACTIVATE_USAGE

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        models = services.require(ModelService)
        variables = services.require(VariableService)

        text = input_text.strip()
        if not text:
            active = models.active_model()
            if active is None:
                raise CommandError(f"model name or ID prefix is required\n\n{ACTIVATE_USAGE}")
            print(f"Active model: {active.name} (ID: {active.short_id()})")
            return
        if not models.list_models():
            raise CommandError("no models found. Use \\model-new to create model configurations")

        model = models.activate_model(find_single_model(models, text, by_id=arg_bool(args, "id")).id)
        output = (
            f"Activated model '{model.name}' (ID: {model.short_id()}, "
            f"Provider: {model.provider}, Base: {model.base_model})"
        )
        variables.set_system_variable("_output", output)
        print(output)


class ModelListCommand(Command):
    name = "model-list"
    description = "List model configurations."
    usage = "Usage:\n  \\model-list[provider=openai]"

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        models = services.require(ModelService)
        provider = arg_str(args, "provider").strip()
        listed: List[ModelConfig] = [
            m for m in models.list_models() if not provider or m.provider == provider
        ]
        active = models.active_model()

        if not listed:
            output = "No models found."
        else:
            lines = [f"Models ({len(listed)}):"]
            for model in listed:
                marker = "*" if active is not None and active.id == model.id else " "
                lines.append(
                    f" {marker} {model.name:<20} {model.provider}/{model.base_model}  (ID: {model.short_id()})"
                )
            output = "\n".join(lines)
        services.require(VariableService).set_system_variable("_output", output)
        print(output)


class ModelDeleteCommand(Command):
    name = "model-delete"
    description = "Delete a model configuration."
    usage = DELETE_USAGE

    def execute(self, args: Dict[str, ArgValue], input_text: str, services) -> None:
        models = services.require(ModelService)
        text = input_text.strip()
        if not text:
            raise CommandError(f"model name or ID prefix is required\n\n{DELETE_USAGE}")

        model = models.delete_model(find_single_model(models, text, by_id=arg_bool(args, "id")).id)
        output = f"Deleted model '{model.name}' (ID: {model.short_id()})"
        services.require(VariableService).set_system_variable("_output", output)
        print(output)
