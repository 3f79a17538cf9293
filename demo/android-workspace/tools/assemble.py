"""Stand-in for a real assemble task: writes a placeholder .aar per variant."""

from __future__ import annotations

import sys
import time
from pathlib import Path


def main(directory: str, name: str, variant: str) -> None:
    output = Path(directory, "build", "outputs", "aar", f"{name}-{variant}.aar")
    output.parent.mkdir(parents=True, exist_ok=True)
    time.sleep(0.2)
    output.write_text(f"{name}:{variant}\n")
    print(f"assembled {output}")


if __name__ == "__main__":
    main(*sys.argv[1:4])
