import importlib.util
import warnings

if importlib.util.find_spec("hypothesis") is None:
    warnings.warn("hypothesis not installed, skipping property test strategies", stacklevel=2)
