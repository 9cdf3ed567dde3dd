#!/usr/bin/env python3
"""
Show the build buddy-launch would run on this machine, without building.
"""

import logging

from buddykit import LauncherSettings, probe, format_command
from buddykit.build import select_from_settings
from buddykit.hardware import detector_for


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    print("=== Buddy Build Plan ===\n")

    settings = LauncherSettings.from_env()
    print(f"Project root: {settings.project_root}")
    print(f"BUDDY_CUDA opt-in: {settings.opt_in}")
    print(f"CUDA_PATH defined: {settings.toolkit_path_present}")
    print(f"CUDA_COMPUTE_CAP override: {settings.explicit_arch or '(none)'}")

    print(f"\nProbing GPU ({settings.probe_backend})...")
    signal = probe(detector_for(settings.probe_backend))
    if signal.present:
        print(f"  Compute capability: {signal.raw_compute_capability}")
    else:
        print("  No NVIDIA GPU detected.")

    print("\n" + "=" * 50)

    config = select_from_settings(settings, signal)
    print(f"\nCUDA enabled: {config.acceleration_enabled}")
    print(f"Architecture: {config.architecture_id or '(toolchain default)'}")
    print(f"\nBuild command:")
    print(f"  {format_command(config, settings.build_tool)}")
    print(f"\nExecutable: {settings.artifact_path}")

    if not config.acceleration_enabled and signal.present:
        print("\nNote: a GPU is available. Set BUDDY_CUDA=1 to build with CUDA.")


if __name__ == "__main__":
    main()
