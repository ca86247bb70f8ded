"""Unsigned Integer Type Specification."""

from __future__ import annotations

from typing import Any, ClassVar, SupportsInt

from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema
from typing_extensions import Self

from .rlp import RLPDecodingError


class BaseUint(int):
    """
    A base class for range-checked unsigned integers that inherits from `int`.

    Arithmetic falls back to plain `int` semantics: the bound is enforced when a
    value enters the type, not on every intermediate result. Block heights are
    compared and subtracted freely against plain integers.
    """

    BITS: ClassVar[int]
    """The number of bits in the integer (overridden by subclasses)."""

    def __new__(cls, value: SupportsInt) -> Self:
        """
        Create and validate a new Uint instance.

        Raises:
            OverflowError: If `value` is outside the allowed range [0, 2**BITS - 1].
        """
        int_value = int(value)
        if not (0 <= int_value < (2**cls.BITS)):
            raise OverflowError(f"{int_value} is out of range for {cls.__name__}")
        return super().__new__(cls, int_value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """Hook into Pydantic's validation system."""

        def validate(value: Any) -> BaseUint:
            """Pydantic validation function that calls the class constructor."""
            if isinstance(value, bool):
                raise ValueError(f"{cls.__name__} does not accept booleans")
            try:
                return cls(value)
            except (OverflowError, TypeError) as e:
                raise ValueError(str(e)) from e

        return core_schema.json_or_python_schema(
            json_schema=core_schema.no_info_after_validator_function(
                validate, core_schema.int_schema(ge=0, lt=2**cls.BITS)
            ),
            python_schema=core_schema.no_info_plain_validator_function(validate),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda instance: int(instance)
            ),
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls, core_schema: core_schema.CoreSchema, handler: GetJsonSchemaHandler
    ) -> JsonSchemaValue:
        """Hook into Pydantic's JSON Schema generation system."""
        json_schema = handler(core_schema)
        json_schema.update(format=f"uint{cls.BITS}")
        return json_schema

    # -------------------------------------------------------------------------
    # RLP scalar form
    # -------------------------------------------------------------------------
    #
    # RLP encodes integers as big-endian byte strings with no leading zeros.
    # Zero is the empty string.

    def to_rlp_bytes(self) -> bytes:
        """Return the minimal big-endian encoding used inside RLP."""
        value = int(self)
        if value == 0:
            return b""
        return value.to_bytes((value.bit_length() + 7) // 8, "big")

    @classmethod
    def from_rlp_bytes(cls, data: bytes) -> Self:
        """
        Parse a minimal big-endian RLP scalar.

        Raises:
            RLPDecodingError: If the scalar has leading zeros or does not fit.
        """
        if data[:1] == b"\x00":
            raise RLPDecodingError(f"Non-canonical: leading zeros in {cls.__name__} scalar")
        if len(data) > cls.BITS // 8:
            raise RLPDecodingError(f"{len(data)}-byte scalar does not fit {cls.__name__}")
        return cls(int.from_bytes(data, "big"))

    # -------------------------------------------------------------------------
    # JSON-RPC quantity form
    # -------------------------------------------------------------------------

    def to_hex(self) -> str:
        """Return the JSON-RPC quantity encoding (`0x` prefix, no leading zeros)."""
        return hex(int(self))

    @classmethod
    def from_hex(cls, value: str) -> Self:
        """
        Parse a JSON-RPC quantity such as `"0x1b4"`.

        Raises:
            ValueError: If the string is not `0x`-prefixed hex.
        """
        if not isinstance(value, str) or not value.startswith("0x"):
            raise ValueError(f"Expected 0x-prefixed quantity, got {value!r}")
        return cls(int(value, 16))

    def __repr__(self) -> str:
        """Return the official string representation of the object."""
        return f"{type(self).__name__}({int(self)})"

    def __str__(self) -> str:
        """Return the informal, user-friendly string representation."""
        return str(int(self))


class Uint64(BaseUint):
    """A type representing a 64-bit unsigned integer (uint64)."""

    BITS = 64


class Uint256(BaseUint):
    """A type representing a 256-bit unsigned integer (uint256)."""

    BITS = 256
