#!/usr/bin/env python3

from __future__ import annotations

from agentaccess.ui.cli import entrypoint

if __name__ == "__main__":
    entrypoint()
