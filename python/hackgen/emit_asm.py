# python/hackgen/emit_asm.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple


@dataclass
class AsmProgram:
    lines: List[str] = field(default_factory=list)

    def add(self, *instrs: str) -> None:
        self.lines.extend(instrs)

    def label(self, name: str) -> None:
        self.lines.append(f"({name})")

    def comment(self, text: str) -> None:
        self.lines.append(f"// {text}")

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def text(self) -> str:
        return "".join(f"{ln}\n" for ln in self.lines)

    def save(self, path: str | Path) -> None:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(self.text())


@dataclass
class LabelAllocator:
    # one counter per translator, shared by comparisons and calls
    counter: int = 0

    def allocate(self) -> int:
        n = self.counter
        self.counter += 1
        return n

    def compare_pair(self) -> Tuple[str, str]:
        n = self.allocate()
        return f"LABEL_TRUE_{n}", f"LABEL_END_{n}"

    def return_label(self) -> str:
        return f"RETURN_LABEL_{self.allocate()}"
