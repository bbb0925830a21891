# gpdb/tools/framework_info_tool.py
# A tool that describes the web project loaded in the console.

import os
import platform
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, Field

from gpdb.models.common import Mode
from .base_tool import BaseTool, ToolContext, safe_repr

APP_CLASSES = {"flask": "Flask", "fastapi": "FastAPI"}
MAX_ROUTES = 50


class FrameworkInfoInput(BaseModel):
    """
    Input model for the FrameworkInfoTool.
    Attributes:
        model_name (Optional[str]): A Django model to describe, e.g. 'Order' or 'shop.Order'.
    """
    model_name: Optional[str] = Field(default=None, description="Django model to describe, by class name "
                                                                "('Order') or app label ('shop.Order').")


class FrameworkInfoTool(BaseTool):
    """
    Reports the project root, the framework and its version and the settings
    module. For Django it also lists the installed apps and their models, or
    the fields of one model; for Flask and FastAPI it lists the routes of the
    application object found in the session.
    """
    name: str = "framework_info"
    description: str = "Get web project information: project root, framework and version, settings " \
        "module, installed apps and models (Django) or routes (Flask, FastAPI). Pass model_name " \
        "to see the fields of one Django model."
    args_schema: Type[BaseModel] = FrameworkInfoInput

    def available(self, mode: Mode) -> bool:
        return mode is Mode.FRAMEWORK

    def execute(self, context: ToolContext, model_name: Optional[str] = None):
        from gpdb.services.context_builder import detect_framework

        framework = detect_framework()
        if framework is None:
            return {"error": "No supported web framework (django, flask, fastapi) is loaded"}

        info: Dict[str, Any] = {
            "framework": framework,
            "version": framework_version(framework),
            "python_version": platform.python_version(),
            "project_root": os.getcwd(),
        }
        if framework == "django":
            return self._django(info, model_name)

        if model_name:
            return {"error": f"model_name is only supported for Django projects, not {framework}"}
        info["settings_module"] = os.environ.get("FLASK_APP") if framework == "flask" else None
        app_name, app = find_app(context, framework)
        if app is None:
            info["app"] = None
            return info
        info["app"] = app_name
        if getattr(app, "root_path", None) and framework == "flask":
            info["project_root"] = str(app.root_path)
        info["routes"] = list_routes(app, framework)
        return info

    def _django(self, info: Dict[str, Any], model_name: Optional[str]) -> Dict[str, Any]:
        from django.apps import apps
        from django.conf import settings

        info["settings_module"] = os.environ.get("DJANGO_SETTINGS_MODULE")
        base_dir = getattr(settings, "BASE_DIR", None)
        if base_dir:
            info["project_root"] = str(Path(base_dir))
        if not apps.ready:
            return {"error": "Django apps are not loaded yet; call django.setup() first"}

        if model_name:
            model = find_model(apps, model_name)
            if model is None:
                return {"error": f"Model not found: {model_name}"}
            return describe_model(model)

        info["installed_apps"] = [config.name for config in apps.get_app_configs()]
        info["models"] = sorted(model._meta.label for model in apps.get_models())
        return info


def framework_version(name: str) -> Optional[str]:
    version = getattr(sys.modules.get(name), "__version__", None)
    if version:
        return str(version)
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return None


def find_model(apps, model_name: str):
    wanted = model_name.lower()
    for model in apps.get_models():
        if wanted in (model._meta.label.lower(), model.__name__.lower()):
            return model
    return None


def describe_model(model) -> Dict[str, Any]:
    fields = []
    for field in model._meta.get_fields():
        related = getattr(field, "related_model", None)
        fields.append({
            "name": field.name,
            "type": type(field).__name__,
            "null": getattr(field, "null", None),
            "related_model": related._meta.label if related is not None else None,
        })
    return {"model": model._meta.label, "db_table": model._meta.db_table, "fields": fields}


def find_app(context: ToolContext, framework: str):
    """Finds the first application object in the session's namespaces."""
    app_class = getattr(sys.modules.get(framework), APP_CLASSES[framework], None)
    if app_class is None or context.binding is None:
        return None, None
    for namespace in (context.binding.locals, context.binding.globals):
        for name, value in namespace.items():
            if isinstance(value, app_class):
                return name, value
    return None, None


def list_routes(app, framework: str) -> List[Dict[str, Any]]:
    routes = []
    if framework == "flask":
        for rule in app.url_map.iter_rules():
            methods = sorted(set(rule.methods or ()) - {"HEAD", "OPTIONS"})
            routes.append({"path": rule.rule, "endpoint": rule.endpoint, "methods": methods})
    else:
        for route in app.routes:
            routes.append({
                "path": getattr(route, "path", safe_repr(route)),
                "endpoint": getattr(route, "name", None),
                "methods": sorted(getattr(route, "methods", None) or ()),
            })
    return routes[:MAX_ROUTES]
