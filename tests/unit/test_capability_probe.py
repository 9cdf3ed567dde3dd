import subprocess
from types import SimpleNamespace

import pytest

from buddykit.exceptions import ProbeUnavailableError
from buddykit.hardware import capability_probe
from buddykit.hardware.capability_probe import (
    CapabilityDetector,
    NvmlCapabilityDetector,
    SmiCapabilityDetector,
    detector_for,
    parse_compute_capability,
    probe,
)


class FakeDetector(CapabilityDetector):
    name = "fake"

    def __init__(self, answer=None, error=None):
        self.answer = answer
        self.error = error
        self.calls = 0

    def detect(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.answer


def test_parse_skips_csv_header():
    assert parse_compute_capability("compute_cap\n8.6\n") == "8.6"


def test_parse_keeps_first_gpu_only():
    assert parse_compute_capability("compute_cap\n7.5\n8.6\n") == "7.5"


def test_parse_ignores_malformed_lines():
    output = "[N/A]\n\nNVIDIA-SMI has failed\n 12.0 \n"
    assert parse_compute_capability(output) == "12.0"


def test_parse_without_match_returns_none():
    assert parse_compute_capability("compute_cap\n[N/A]\n") is None
    assert parse_compute_capability("") is None


def test_probe_returns_detected_capability():
    detector = FakeDetector(answer="7.5")
    signal = probe(detector)
    assert signal.raw_compute_capability == "7.5"
    assert signal.present
    assert detector.calls == 1


def test_probe_downgrades_unavailable_to_empty_signal():
    detector = FakeDetector(error=ProbeUnavailableError("no driver", detector="fake"))
    signal = probe(detector)
    assert signal.raw_compute_capability is None
    assert not signal.present
    # No retry on failure
    assert detector.calls == 1


def test_probe_does_not_swallow_unexpected_errors():
    detector = FakeDetector(error=RuntimeError("bug"))
    with pytest.raises(RuntimeError):
        probe(detector)


def test_smi_detector_parses_stdout(monkeypatch):
    seen = {}

    def fake_run(command, **kwargs):
        seen["command"] = command
        return subprocess.CompletedProcess(command, 0, stdout="compute_cap\n8.9\n", stderr="")

    monkeypatch.setattr(capability_probe.subprocess, "run", fake_run)
    assert SmiCapabilityDetector().detect() == "8.9"
    assert seen["command"][0] == "nvidia-smi"


@pytest.mark.parametrize("error", [
    FileNotFoundError("nvidia-smi"),
    subprocess.CalledProcessError(9, ["nvidia-smi"]),
    subprocess.TimeoutExpired(["nvidia-smi"], 15),
    PermissionError("denied"),
])
def test_smi_detector_failures_are_unavailable(monkeypatch, error):
    def fake_run(command, **kwargs):
        raise error

    monkeypatch.setattr(capability_probe.subprocess, "run", fake_run)
    with pytest.raises(ProbeUnavailableError):
        SmiCapabilityDetector().detect()

    # ...and probe() turns them into "no GPU"
    assert probe(SmiCapabilityDetector()).raw_compute_capability is None


def _fake_pynvml(capability=(8, 6), device_count=1, fail_init=False):
    class NVMLError(Exception):
        pass

    state = {"shutdown": 0}

    def nvmlInit():
        if fail_init:
            raise NVMLError("Driver Not Loaded")

    def nvmlShutdown():
        state["shutdown"] += 1

    module = SimpleNamespace(
        NVMLError=NVMLError,
        nvmlInit=nvmlInit,
        nvmlShutdown=nvmlShutdown,
        nvmlDeviceGetCount=lambda: device_count,
        nvmlDeviceGetHandleByIndex=lambda index: object(),
        nvmlDeviceGetCudaComputeCapability=lambda handle: capability,
    )
    return module, state


def test_nvml_detector_formats_major_minor(monkeypatch):
    pynvml, state = _fake_pynvml(capability=(7, 5))
    monkeypatch.setattr(capability_probe, "_load_pynvml", lambda: pynvml)
    assert NvmlCapabilityDetector().detect() == "7.5"
    assert state["shutdown"] == 1


def test_nvml_detector_without_devices(monkeypatch):
    pynvml, state = _fake_pynvml(device_count=0)
    monkeypatch.setattr(capability_probe, "_load_pynvml", lambda: pynvml)
    assert NvmlCapabilityDetector().detect() is None
    assert state["shutdown"] == 1


def test_nvml_detector_init_failure(monkeypatch):
    pynvml, state = _fake_pynvml(fail_init=True)
    monkeypatch.setattr(capability_probe, "_load_pynvml", lambda: pynvml)
    with pytest.raises(ProbeUnavailableError):
        NvmlCapabilityDetector().detect()
    assert state["shutdown"] == 0


def test_nvml_detector_without_library(monkeypatch):
    monkeypatch.setattr(capability_probe, "_load_pynvml", lambda: None)
    assert probe(NvmlCapabilityDetector()).raw_compute_capability is None


def test_detector_for_backends():
    assert isinstance(detector_for("smi"), SmiCapabilityDetector)
    assert isinstance(detector_for("nvml"), NvmlCapabilityDetector)
    with pytest.raises(ValueError):
        detector_for("rocm")
