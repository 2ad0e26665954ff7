"""Nix environment expression installed by the recipe's setup stage."""

from __future__ import annotations

from collections.abc import Iterable

from stackplan.plan.model import BuildPlan, Package

NIXPKGS_ARCHIVE = "https://github.com/NixOS/nixpkgs/archive/41cc1d5d9584103be4108c1815c350e07c807036.tar.gz"


def create_nix_expression(packages: Iterable[Package] | BuildPlan) -> str:
    if isinstance(packages, BuildPlan):
        packages = packages.setup.packages if packages.setup is not None else ()
    names = sorted({str(package) for package in packages})
    paths = " ".join(names)
    return (
        "{ }:\n"
        "\n"
        "let\n"
        f"  pkgs = import (fetchTarball \"{NIXPKGS_ARCHIVE}\") {{ }};\n"
        "in with pkgs;\n"
        "  buildEnv {\n"
        "    name = \"env\";\n"
        f"    paths = [ {paths} ];\n"
        "  }\n"
    )


__all__ = ["NIXPKGS_ARCHIVE", "create_nix_expression"]
