"""
Configuration management for the pair-verify client.

A configuration directory holds the controller's long-term identity and
the long-term public keys of the accessories it has been paired with:

    ~/.pairverify/
        controller_id          controller pairing identifier (UTF-8)
        controller_ltsk.hex    Ed25519 seed, hex encoded
        accessories/<handle>.hex

Provisioning the keys (pair-setup) happens elsewhere; this module only
loads and stores its results.
"""

import logging
import os
from typing import Optional

from .crypto.utils import parse_hex
from .identity import ControllerIdentity, FileIdentityStore, load_key_file, create_key_file


logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration operations fail."""
    pass


class PairVerifyConfig:
    """
    Loads and saves the controller identity and accessory keys.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_dir: Directory for configuration files. Defaults to ~/.pairverify/
        """
        if config_dir is None:
            config_dir = os.path.expanduser("~/.pairverify")

        self.config_dir = config_dir
        self.identifier_path = os.path.join(config_dir, "controller_id")
        self.key_file_path = os.path.join(config_dir, "controller_ltsk.hex")
        self.accessories_dir = os.path.join(config_dir, "accessories")

        os.makedirs(config_dir, exist_ok=True)

    def get_controller_identity(self) -> ControllerIdentity:
        """
        Load the controller identity.

        Returns:
            ControllerIdentity with identifier and long-term secret key

        Raises:
            ConfigError: If the identity files are missing or invalid
        """
        if not self.identity_exists():
            raise ConfigError(f"Controller identity not found in {self.config_dir}")

        try:
            with open(self.identifier_path, 'r', encoding='utf-8') as f:
                identifier = f.read().strip()
            ltsk = load_key_file(self.key_file_path)
            return ControllerIdentity(identifier=identifier, ltsk=ltsk)
        except FileNotFoundError as e:
            raise ConfigError(f"Controller identity file not found: {e.filename}") from e
        except (ValueError, UnicodeDecodeError) as e:
            raise ConfigError(f"Invalid controller identity: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load controller identity: {e}") from e

    def set_controller_identity(self, identity: ControllerIdentity) -> None:
        """
        Save a controller identity, replacing any existing one.

        Raises:
            ConfigError: If the files cannot be written
        """
        try:
            with open(self.identifier_path, 'w', encoding='utf-8') as f:
                f.write(identity.identifier)
            create_key_file(self.key_file_path, identity.ltsk)
        except OSError as e:
            raise ConfigError(f"Failed to save controller identity: {e}") from e

        logger.info(f"Controller identity {identity.identifier} saved to {self.config_dir}")

    def create_new_controller_identity(self, identifier: str) -> ControllerIdentity:
        """
        Generate and save a new controller identity.

        Args:
            identifier: Controller pairing identifier

        Returns:
            The generated identity

        Raises:
            ConfigError: If the identifier is invalid or saving fails
        """
        try:
            identity = ControllerIdentity.generate(identifier)
        except ValueError as e:
            raise ConfigError(f"Invalid controller identity: {e}") from e

        self.set_controller_identity(identity)
        return identity

    def identity_exists(self) -> bool:
        """Check if a controller identity has been saved."""
        return os.path.exists(self.identifier_path) and os.path.exists(self.key_file_path)

    def identity_store(self) -> FileIdentityStore:
        """Accessory key store kept in this configuration directory."""
        return FileIdentityStore(self.accessories_dir)

    def add_accessory(self, handle: str, ltpk_hex: str) -> None:
        """
        Register an accessory long-term public key from hex.

        Raises:
            ConfigError: If the handle or key is invalid
        """
        try:
            ltpk = parse_hex(ltpk_hex)
            self.identity_store().add_accessory(handle, ltpk)
        except ValueError as e:
            raise ConfigError(f"Invalid accessory key for {handle}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to save accessory key for {handle}: {e}") from e
