from __future__ import annotations


def resolve_dh_ds(*, dh: float | None, ds: float | None, dg: float | None, temp_k: float) -> tuple[float, float]:
    """
    Resolve (ΔH, ΔS) from any two of (ΔH, ΔS, ΔG(T)).

    The missing term is derived from ``ΔG(T) = ΔH − T * (ΔS / 1000)``. When all
    three are given, ``dg`` is ignored.

    Parameters
    ----------
    dh : float or None
        Enthalpy change ΔH in kcal/mol.
    ds : float or None
        Entropy change ΔS in cal/(K·mol).
    dg : float or None
        Free energy change ΔG(T) in kcal/mol at ``temp_k``.
    temp_k : float
        Absolute temperature in Kelvin at which ``dg`` was measured.

    Returns
    -------
    tuple[float, float]
        ``(ΔH, ΔS)`` in (kcal/mol, cal/(K·mol)).

    Raises
    ------
    ValueError
        If fewer than two of ``dh``, ``ds``, ``dg`` are provided.
    """
    present = sum(v is not None for v in (dh, ds, dg))
    if present < 2:
        raise ValueError("Insufficient thermo terms; need two of (dh, ds, dg).")

    if dh is not None and ds is not None:
        return float(dh), float(ds)

    if dh is not None:
        # ds = 1000 * (dh − dg) / T
        return float(dh), 1000.0 * (float(dh) - float(dg)) / float(temp_k)

    # dh = dg + T * (ds / 1000)
    return float(dg) + float(temp_k) * (float(ds) / 1000.0), float(ds)
