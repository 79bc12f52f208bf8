"""Bridge test fixtures: mock SB objects for each wrapped LLDB class."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _sb_error(success: bool = True) -> MagicMock:
    err = MagicMock()
    err.Success.return_value = success
    err.Fail.return_value = not success
    err.__str__ = lambda self: "" if success else "mock error"
    err.__bool__ = lambda self: True  # SBError is truthy
    return err


# ---------------------------------------------------------------------------
# SBDebugger
# ---------------------------------------------------------------------------

@pytest.fixture()
def mock_sb_debugger():
    sb = MagicMock(name="SBDebugger")
    sb.GetAsync.return_value = False
    sb.GetCommandInterpreter.return_value = MagicMock()
    sb.GetCommandInterpreter().HandleCommand.return_value = None
    return sb


# ---------------------------------------------------------------------------
# SBTarget
# ---------------------------------------------------------------------------

@pytest.fixture()
def mock_sb_target():
    sb = MagicMock(name="SBTarget")

    sb.GetByteOrder.return_value = 4  # eByteOrderLittle
    sb.GetAddressByteSize.return_value = 8
    sb.GetNumModules.return_value = 0

    sc_list = MagicMock()
    sc_list.GetSize.return_value = 0
    sb.FindSymbols.return_value = sc_list

    return sb


# ---------------------------------------------------------------------------
# SBProcess
# ---------------------------------------------------------------------------

@pytest.fixture()
def mock_sb_process(mock_sb_target):
    sb = MagicMock(name="SBProcess")
    sb.GetState.return_value = 5  # eStateStopped
    sb.GetProcessID.return_value = 12345
    sb.GetTarget.return_value = mock_sb_target

    sb.Stop.return_value = _sb_error(True)
    sb.Detach.return_value = _sb_error(True)

    sb.ReadMemory.return_value = b"\x41\x42\x43\x44"

    region_list = MagicMock()
    region_list.GetSize.return_value = 0
    sb.GetMemoryRegions.return_value = region_list

    return sb


# ---------------------------------------------------------------------------
# Convenience: error fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def mock_sb_error_success():
    return _sb_error(True)


@pytest.fixture()
def mock_sb_error_fail():
    return _sb_error(False)
