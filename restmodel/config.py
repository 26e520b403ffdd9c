"""
Settings for building resource models.

Every setting is resolved in this order:

1. Explicit argument
2. Environment variable (``RESTMODEL_STRICT``, ``RESTMODEL_VALIDATE``)
3. Default
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

# Set up logger for this module
logger = logging.getLogger(__name__)

_TRUE_VALUES = ('true', '1', 'yes', 'on')
_FALSE_VALUES = ('false', '0', 'no', 'off')


def env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment.

    Unrecognized values are logged and the default is used.
    """
    env_value = os.environ.get(name, '').strip().lower()
    if env_value in _TRUE_VALUES:
        return True
    if env_value in _FALSE_VALUES:
        return False
    if env_value:
        logger.warning(f"Ignoring unrecognized value for {name}: {env_value!r}")
    return default


@dataclass(frozen=True)
class ModelSettings:
    """Settings used by ``build_resource``.

    Attributes:
        strict: Raise ModelValidationError when the model has fatal issues
        validate: Run the BasicValidator over the built resource
    """

    strict: bool = False
    validate: bool = True

    @classmethod
    def from_env(cls, strict: Optional[bool] = None, validate: Optional[bool] = None) -> "ModelSettings":
        """Create settings from explicit arguments, falling back to the environment."""
        return cls(
            strict=strict if strict is not None else env_flag('RESTMODEL_STRICT', cls.strict),
            validate=validate if validate is not None else env_flag('RESTMODEL_VALIDATE', cls.validate),
        )
