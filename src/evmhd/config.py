import copy
import json
import os

try:
    import tomllib

    HAS_TOMLLIB = True
except ImportError:
    HAS_TOMLLIB = False

DEFAULT_CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".evmhd")
DEFAULT_PATH = "m/44'/60'/0'/0/0"


class Config(object):
    def __init__(self, **kwargs):
        self.log_level = kwargs.get("log_level", "error")
        # cli passes path=None when no path was given
        self.path = kwargs.get("path") or DEFAULT_PATH
        self.signature_format = kwargs.get("signature_format", "standard")

        self.input_format = kwargs.get("input_format", "hex")
        self.output_format = kwargs.get("output_format", "hex")

    def load_config(self, config_dir: str = DEFAULT_CONFIG_DIR):
        """
        Look for configuration file in ~/.evmhd and load, if present
        """
        if HAS_TOMLLIB and os.path.exists(os.path.join(config_dir, "config.toml")):
            with open(os.path.join(config_dir, "config.toml"), "rb") as config_file:
                config_file_dict = tomllib.load(config_file)
        elif os.path.exists(os.path.join(config_dir, "config.json")):
            with open(os.path.join(config_dir, "config.json")) as config_file:
                config_file_dict = json.load(config_file)
        else:
            config_file_dict = {}

        if config_file_dict:
            # re __init__ to avoid applying invalid keys
            config_update = copy.deepcopy(vars(self))
            config_update.update(config_file_dict)
            self.__init__(**config_update)

    def update(self, **kwargs):
        """
        Update Config with kwargs

        Avoid applying keys not defined in __init__ by re-instantiating
        """
        updated_attrs = copy.deepcopy(vars(self))
        updated_attrs.update(kwargs)
        self.__init__(**updated_attrs)
