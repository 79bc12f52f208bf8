"""Pythonic wrapper around LLDB's SBTarget."""

from __future__ import annotations

from typing import Any, List, Optional

try:
    import lldb
except ImportError:
    lldb = None  # type: ignore[assignment]

from .types import ModuleInfo, SymbolInfo


class Target:
    """High-level wrapper around ``lldb.SBTarget``.

    Exposes the pieces of target metadata the heap scanner relies on:
    address width, byte order, loaded modules and symbol lookup.
    """

    def __init__(self, sb_target: Any) -> None:
        self._sb = sb_target

    # -- properties --------------------------------------------------------

    @property
    def byte_order(self) -> str:
        """Return the byte order as ``"little"``, ``"big"`` or ``"unknown"``."""
        order = self._sb.GetByteOrder()
        if order == lldb.eByteOrderLittle:
            return "little"
        elif order == lldb.eByteOrderBig:
            return "big"
        return "unknown"

    @property
    def address_byte_size(self) -> int:
        """Return the pointer width of the target in bytes (4 or 8)."""
        return self._sb.GetAddressByteSize() or 8

    @property
    def modules(self) -> List[ModuleInfo]:
        """Return metadata for every loaded module."""
        result: List[ModuleInfo] = []
        for i in range(self._sb.GetNumModules()):
            mod = self._sb.GetModuleAtIndex(i)
            if not mod.IsValid():
                continue
            file_spec = mod.GetFileSpec()
            # Base address: first section's load address or file address
            base = 0
            if mod.GetNumSections() > 0:
                section = mod.GetSectionAtIndex(0)
                addr = section.GetLoadAddress(self._sb)
                if addr != lldb.LLDB_INVALID_ADDRESS:
                    base = addr
                else:
                    base = section.GetFileAddress()
            result.append(
                ModuleInfo(
                    name=file_spec.GetFilename() or "",
                    path=str(file_spec) if file_spec.IsValid() else "",
                    uuid=mod.GetUUIDString() or "",
                    base_address=base,
                )
            )
        return result

    # -- public API --------------------------------------------------------

    def find_symbols(
        self, name: str, module: Optional[str] = None
    ) -> List[SymbolInfo]:
        """Search for symbols by name.

        Parameters
        ----------
        name:
            The symbol name, e.g. ``__curbrk``.
        module:
            Optional module file name (``libc.so.6``) restricting the match.

        Returns
        -------
        list[SymbolInfo]
            Symbols with a valid load address, in LLDB's order.
        """
        sc_list = self._sb.FindSymbols(name)
        results: List[SymbolInfo] = []
        for i in range(sc_list.GetSize()):
            sc = sc_list.GetContextAtIndex(i)
            sym = sc.GetSymbol()
            if not sym.IsValid():
                continue
            mod = sc.GetModule()
            mod_name = (
                mod.GetFileSpec().GetFilename() if mod.IsValid() else ""
            ) or ""
            if module is not None and mod_name != module:
                continue
            addr = sym.GetStartAddress().GetLoadAddress(self._sb)
            if addr == lldb.LLDB_INVALID_ADDRESS:
                continue
            results.append(
                SymbolInfo(name=sym.GetName() or name, address=addr, module=mod_name)
            )
        return results
