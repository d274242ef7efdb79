"""Proof-side error types."""


class SynthesisError(Exception):
    """A circuit could not be synthesized or proved for one block."""


class MissingWitness(SynthesisError):
    """A value required in witness mode is absent."""
