from importlib import import_module

from django.apps import AppConfig, apps
from django.utils.module_loading import module_has_submodule

import logging

logger = logging.getLogger("quiz_api")


class AccessConfig(AppConfig):
    """
    Builds the list registry once at startup.

    Every installed app that ships a ``lists`` module declares its lists there
    in a ``register(registry)`` function. The finished registry is kept on this
    app config and handed to each request by ``ListAccessMiddleware``.
    """
    name = "access"
    registry = None

    def ready(self):
        from access.registry import ListRegistry

        registry = ListRegistry()
        for app_config in apps.get_app_configs():
            if module_has_submodule(app_config.module, "lists"):
                module = import_module(f"{app_config.name}.lists")
                module.register(registry)

        self.registry = registry
        logger.debug(f"registered lists: {', '.join(config.key for config in registry)}")
