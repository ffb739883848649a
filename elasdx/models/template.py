import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from elasdx.models.errors import TemplateFileError
from elasdx.models.utils import alias_from_path

logger = logging.getLogger(__name__)

INDEX_KEY = "index"
REFRESH_INTERVAL_SETTING = "refresh_interval"
NUM_REPLICAS_SETTING = "number_of_replicas"

# Applied while documents are being copied into a fresh index, undone by the steady state settings afterwards
BULK_INDEXING_SETTINGS = {
    INDEX_KEY: {
        REFRESH_INTERVAL_SETTING: "-1",
        NUM_REPLICAS_SETTING: 0,
    }
}


def _flatten_index_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    # Settings can be declared as {"refresh_interval": ..}, {"index.refresh_interval": ..} or
    # {"index": {"refresh_interval": ..}}. The cluster always answers with the nested form.
    flat: Dict[str, Any] = {}
    for key, value in settings.items():
        if key == INDEX_KEY and isinstance(value, dict):
            flat.update(_flatten_index_settings(value))
        elif key.startswith(f"{INDEX_KEY}."):
            flat[key[len(INDEX_KEY) + 1:]] = value
        else:
            flat.setdefault(key, value)
    return flat


class TemplateSettings(BaseModel):
    """
    The subset of template settings that describe an index at rest. A value of None means the template doesn't
    declare it and the cluster default applies.
    """
    refresh_interval: Optional[str] = None
    number_of_replicas: Optional[str] = None

    @field_validator(REFRESH_INTERVAL_SETTING, NUM_REPLICAS_SETTING, mode='before')
    @classmethod
    def stringify(cls, v):
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError(f"expected a string or number, got {type(v).__name__}")
        return str(v)

    @classmethod
    def from_settings(cls, settings: Optional[Dict[str, Any]]) -> 'TemplateSettings':
        if settings is not None and not isinstance(settings, dict):
            raise ValueError(f"settings must be a JSON object, got {type(settings).__name__}")
        flat = _flatten_index_settings(settings or {})
        return cls(
            refresh_interval=flat.get(REFRESH_INTERVAL_SETTING),
            number_of_replicas=flat.get(NUM_REPLICAS_SETTING),
        )

    def steady_state(self) -> Dict[str, Any]:
        """Index settings body restoring these values, using null to fall back to the cluster default."""
        return {
            INDEX_KEY: {
                REFRESH_INTERVAL_SETTING: self.refresh_interval,
                NUM_REPLICAS_SETTING: self.number_of_replicas,
            }
        }


class TemplateDefinition(BaseModel):
    name: str
    body: str = Field(description="Template document exactly as it will be sent to the cluster")
    index_patterns: List[str] = []
    settings: TemplateSettings = TemplateSettings()

    @field_validator('index_patterns', mode='before')
    @classmethod
    def listify(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @classmethod
    def from_file(cls, file_path: str) -> 'TemplateDefinition':
        try:
            with open(file_path, encoding="utf-8") as f:
                body = f.read()
        except OSError as e:
            raise TemplateFileError(file_path, e.strerror or str(e)) from e
        return cls.from_document(alias_from_path(file_path), body, source=file_path)

    @classmethod
    def from_document(cls, name: str, body: str, source: Optional[str] = None) -> 'TemplateDefinition':
        source = source or name
        try:
            document = json.loads(body)
        except json.JSONDecodeError as e:
            raise TemplateFileError(source, f"invalid JSON ({e})") from e
        if not isinstance(document, dict):
            raise TemplateFileError(source, "expected a JSON object")

        try:
            return cls(
                name=name,
                body=body,
                # Elasticsearch 5 and earlier call this "template"
                index_patterns=document.get("index_patterns", document.get("template")),
                settings=TemplateSettings.from_settings(document.get("settings")),
            )
        except ValueError as e:
            raise TemplateFileError(source, str(e)) from e

    @classmethod
    def settings_from_response(cls, name: str, response: Dict[str, Any]) -> TemplateSettings:
        """Decode the steady state settings of template `name` from a GET _template response."""
        template = response.get(name)
        if template is None:
            logger.info(f"Template {name} missing from response, using cluster defaults")
            return TemplateSettings()
        return TemplateSettings.from_settings(template.get("settings"))
