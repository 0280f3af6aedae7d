import importlib
import sys
from typing import Any, Dict, List, Tuple

# module paths of the built-in plugins
BUILTIN_PLUGINS = [
    "almost_fullscreen.plugins.core.event_manager",
    "almost_fullscreen.plugins.rules.wayfire.almost_fullscreen",
]

REQUIRED_METADATA = ["id", "name", "version"]


class PluginLoader:
    """
    Imports the built-in plugins, orders them so every plugin starts after
    the plugins named in its 'deps', and drives their on_start/on_stop.

    Plugins are keyed by module name, e.g. "event_manager".
    """

    def __init__(self, app_instance, module_paths=None):
        self.app_instance = app_instance
        self.logger = app_instance.logger
        self.module_paths: List[str] = list(module_paths or BUILTIN_PLUGINS)
        self.disabled_plugins: List[str] = list(
            getattr(app_instance, "disabled_plugins", [])
        )
        self.plugins: Dict[str, Any] = {}
        self.plugin_metadata_map: Dict[str, Dict[str, Any]] = {}
        self.plugins_import: Dict[str, str] = {}
        self.started: List[str] = []

    def _import_and_validate(self) -> Dict[str, Tuple[Any, Dict[str, Any]]]:
        valid = {}
        for module_path in self.module_paths:
            module_name = module_path.rsplit(".", 1)[-1]
            if module_name.startswith("_") or module_name in self.disabled_plugins:
                continue
            try:
                module = importlib.import_module(module_path)
            except Exception as e:
                self.logger.error(
                    f"Failed to import plugin {module_name}: {e}", exc_info=True
                )
                continue
            if not hasattr(module, "get_plugin_metadata") or not hasattr(
                module, "get_plugin_class"
            ):
                self.logger.error(
                    f"Module {module_name} is missing required functions "
                    "(get_plugin_metadata or get_plugin_class). Skipping."
                )
                continue
            metadata = module.get_plugin_metadata(self.app_instance)
            if not isinstance(metadata, dict):
                self.logger.error(
                    f"Plugin {module_name} get_plugin_metadata did not return a dictionary. Skipping."
                )
                continue
            missing_fields = [f for f in REQUIRED_METADATA if f not in metadata]
            if missing_fields:
                self.logger.error(
                    f"Plugin {module_name} is missing required metadata fields: "
                    f"{', '.join(missing_fields)}. Skipping."
                )
                continue
            if not metadata.get("enabled", True):
                self.logger.debug(f"Skipping disabled plugin: {module_name}")
                continue
            deps = metadata.get("deps", [])
            if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
                self.logger.error(
                    f"Plugin '{module_name}' has an invalid 'deps' list. Skipping."
                )
                continue
            self.plugin_metadata_map[module_name] = metadata
            self.plugins_import[module_name] = module_path
            valid[module_name] = (module, metadata)
        return valid

    def sort_plugins(self, valid: Dict[str, Tuple[Any, Dict[str, Any]]]) -> List[str]:
        """
        Topological sort (Kahn's algorithm) over 'deps'. Ties are broken by
        'priority' (highest first), then 'index' (lowest first). Plugins in a
        dependency cycle or depending on a missing plugin are left out.
        """
        in_degree = {name: 0 for name in valid}
        adj_list: Dict[str, List[str]] = {name: [] for name in valid}
        broken = set()
        for name, (_, metadata) in valid.items():
            for dep in metadata.get("deps", []):
                if dep in valid:
                    adj_list[dep].append(name)
                    in_degree[name] += 1
                else:
                    self.logger.error(
                        f"Plugin '{name}' depends on '{dep}', which is not loaded. Skipping."
                    )
                    broken.add(name)

        def sort_key(name):
            metadata = valid[name][1]
            return (-metadata.get("priority", 0), metadata.get("index", 0))

        ready = sorted(
            (n for n, d in in_degree.items() if d == 0 and n not in broken),
            key=sort_key,
        )
        ordered = []
        while ready:
            current = ready.pop(0)
            ordered.append(current)
            for dependent in adj_list[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0 and dependent not in broken:
                    ready.append(dependent)
                    ready.sort(key=sort_key)
        skipped = [n for n in valid if n not in ordered and n not in broken]
        if skipped:
            self.logger.error(
                f"Dependency cycle detected; not loading: {', '.join(sorted(skipped))}"
            )
        return ordered

    def load_plugins(self) -> List[str]:
        """Imports, instantiates and starts every plugin. Returns the started names."""
        valid = self._import_and_validate()
        for name in self.sort_plugins(valid):
            module = valid[name][0]
            if any(dep not in self.started for dep in valid[name][1].get("deps", [])):
                self.logger.error(
                    f"Not starting '{name}': a dependency failed to start."
                )
                continue
            self.enable_plugin(name, module)
        return list(self.started)

    def enable_plugin(self, plugin_name: str, module) -> bool:
        try:
            plugin_class = module.get_plugin_class()
            plugin_instance = plugin_class(self.app_instance)
            self.plugins[plugin_name] = plugin_instance
            plugin_instance.on_start()
        except Exception as e:
            self.logger.error(
                f"Failed to start plugin {plugin_name}: {e}", exc_info=True
            )
            self.plugins.pop(plugin_name, None)
            return False
        self.started.append(plugin_name)
        self.logger.info(f"Started plugin: {plugin_name}")
        return True

    def disable_plugin(self, plugin_name: str) -> None:
        """Stops a plugin and forgets it. Errors from on_stop are logged."""
        if plugin_name not in self.plugins:
            self.logger.warning(f"Plugin '{plugin_name}' not found.")
            return
        plugin_instance = self.plugins.pop(plugin_name)
        if plugin_name in self.started:
            self.started.remove(plugin_name)
        try:
            plugin_instance.on_stop()
            self.logger.info(f"Stopped plugin: {plugin_name}")
        except Exception as e:
            self.logger.error(f"Error stopping plugin {plugin_name}: {e}")

    def stop_plugins(self) -> None:
        """Stops the started plugins in reverse start order."""
        for name in reversed(list(self.started)):
            self.disable_plugin(name)

    def reload_plugin(self, plugin_name: str) -> bool:
        """Stops a plugin, re-imports its module from disk and starts it again."""
        module_path = self.plugins_import.get(plugin_name)
        if not module_path:
            self.logger.error(
                f"Module path for plugin '{plugin_name}' not found. Cannot reload."
            )
            return False
        self.disable_plugin(plugin_name)
        try:
            if module_path in sys.modules:
                module = importlib.reload(sys.modules[module_path])
            else:
                module = importlib.import_module(module_path)
        except Exception as e:
            self.logger.error(
                f"Critical error during reload of '{plugin_name}': {e}", exc_info=True
            )
            return False
        return self.enable_plugin(plugin_name, module)
