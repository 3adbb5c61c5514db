"""Test helpers for helm-images tools."""

from pathlib import Path

from helm_images.command import Command, run

HELM_IMAGES_BIN = "helm-images"
FAKE_HELM = str(Path.cwd() / "tests/testdata/fake-helm")


async def run_command(args: list[str], env: dict[str, str] | None = None) -> str:
    return await run(
        Command([HELM_IMAGES_BIN] + args, env={"HELM_BIN": FAKE_HELM, **(env or {})})
    )
