import importlib

mod = "hiveschema"
class LazyLoader:
    """
    Lazy loader for the hiveschema functions to speed up startup time.
    """
    def __init__(self, mappings):
        self._modules = {}
        self._mappings = mappings

    def _load_module(self, module_name):
        if module_name not in self._modules:
            self._modules[module_name] = importlib.import_module(module_name)
        return self._modules[module_name]

    def __getattr__(self, item):
        if item in self._mappings:
            module_name, func_name = self._mappings[item]
            module = self._load_module(module_name)
            return getattr(module, func_name)
        else:
            return self._load_module(f"{mod}.{item}")

# Define the functions and their corresponding module paths
_mappings = {
    "convert_json_to_hive": (f"{mod}.jsontohive", "convert_json_to_hive"),
    "infer_hive_schema_from_files": (f"{mod}.jsontohive", "infer_hive_schema_from_files"),
    "infer_hive_schema_from_json": (f"{mod}.schema_inference", "infer_hive_schema_from_json"),
    "merge_hive_types": (f"{mod}.schema_inference", "merge_hive_types"),
    "HiveSchemaInferrer": (f"{mod}.schema_inference", "HiveSchemaInferrer"),
    "convert_hive_type_to_ddl": (f"{mod}.hivetoddl", "convert_hive_type_to_ddl"),
    "convert_hive_type_to_flat": (f"{mod}.hivetoddl", "convert_hive_type_to_flat"),
    "hive_type_string": (f"{mod}.hivetoddl", "hive_type_string"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
