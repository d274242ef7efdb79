"""ProofBundleStore - one JSON file per processed slot."""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Union

from slot_prover.bundle import BlockProof

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "proofs"


class ProofBundleStore:
    """
    Writes BlockProof bundles under a dedicated directory.

    Files are named `block_proof_<slot>.json`. Each write goes to a temporary
    file in the same directory and is renamed into place, so a reader never
    sees a partial bundle. I/O errors propagate to the caller.
    """

    def __init__(self, directory: Union[str, Path] = DEFAULT_OUTPUT_DIR):
        self.directory = Path(directory)

    def reset(self) -> None:
        """Recreate the directory empty."""
        if self.directory.exists():
            logger.info("Clearing %s", self.directory)
            shutil.rmtree(self.directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, slot: int) -> Path:
        return self.directory / f"block_proof_{slot}.json"

    def persist(self, bundle: BlockProof) -> Path:
        """Write the bundle for its slot, replacing any previous file."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(bundle.slot)
        text = json.dumps(bundle.to_json(), indent=2) + "\n"

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=self.directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.info("Saved proof for slot %d to %s", bundle.slot, path)
        return path

    def load(self, slot: int) -> BlockProof:
        with open(self.path_for(slot), encoding="utf-8") as f:
            return BlockProof.from_json(json.load(f))
