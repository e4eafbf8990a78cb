import os
import numpy as np
import matplotlib.pyplot as plt
from matplotlib import gridspec
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401 (needed for 3D)
import surface_tools as surf
import scatter_tools as sct
import statistics_tools as stat


def get_default_brdf_file_name(parameters: sct.SurfaceParameters) -> str:
    return f"BRDF_Ra{parameters.ra:.2f}_Wl{parameters.wavelength:.2f}.csv"


def export_brdf_csv(
        folder_name: str,
        file_name: str | None,
        parameters: sct.SurfaceParameters,
        distribution: sct.ScatteringDistribution,
        step: float,
        verbose: bool = False
) -> str:
    """
    Write a BRDF slice as CSV: a '#'-commented preamble describing the run,
    the column header, then one "angle,intensity" row per sample.

    Values are written with Python's shortest round-trip float repr, so
    `import_tools.import_brdf_csv` recovers the arrays bit-for-bit.

    Returns
    -------
    str
        Path of the written file.
    """
    angle = np.asarray(distribution.angle, dtype=float).ravel()
    intensity = np.asarray(distribution.intensity, dtype=float).ravel()
    if angle.size != intensity.size:
        raise ValueError(f"angle length {angle.size} != intensity length {intensity.size}")

    g = sct.get_g_parameter(parameters.ra, parameters.wavelength, parameters.incident_angle)
    header = [
        "# AluRough BRDF Data Export",
        f"# Material: {parameters.material}",
        f"# Ra: {parameters.ra:.6f} um",
        f"# Wavelength: {parameters.wavelength:.3f} um",
        f"# Model: {parameters.model_type.value}",
        f"# Reflectivity: {parameters.reflectivity}",
        f"# Slope Factor: {parameters.slope_factor}",
        f"# Phase Factor (g): {g:.4e}",
        f"# Resolution: {step} deg",
        "Angle(deg),RelativeIntensity",
    ]

    if not file_name:
        file_name = get_default_brdf_file_name(parameters)
    os.makedirs(folder_name, exist_ok=True)
    out_path = os.path.join(
        folder_name, file_name if file_name.lower().endswith(".csv") else f"{file_name}.csv"
    )

    with open(out_path, "w", encoding="utf-8") as f:
        f.write("\n".join(header) + "\n")
        for a, i in zip(angle.tolist(), intensity.tolist()):
            f.write(f"{a!r},{i!r}\n")

    if verbose:
        print(f"[export_brdf_csv] Wrote {angle.size} samples to {out_path}")
    return out_path


def decimate_distribution(
        distribution: sct.ScatteringDistribution,
        max_points: int = 600
) -> sct.ScatteringDistribution:
    """Keep every k-th sample, k = max(1, n // max_points), for plotting."""
    if max_points <= 0:
        raise ValueError("max_points must be > 0.")
    n = len(distribution.angle)
    k = max(1, n // max_points)
    return sct.ScatteringDistribution(
        np.asarray(distribution.angle)[::k], np.asarray(distribution.intensity)[::k]
    )


def plot_brdf(
        folder_name: str,
        file_name: str,
        distribution: sct.ScatteringDistribution,
        scatterer: sct.Scatterer,
        energy: stat.EnergyConcentration | None = None,
        max_points: int = 600
) -> str:
    """
    Save the BRDF slice (left) and its ranked cumulative energy curve (right)
    as a JPG. The title carries g, the resolved model and its regime.
    """
    # ----- IO -----
    os.makedirs(folder_name, exist_ok=True)
    if not file_name.lower().endswith(".jpg"):
        file_name += ".jpg"
    out_path = os.path.join(folder_name, file_name)

    shown = decimate_distribution(distribution, max_points)
    cumulative = stat.get_cumulative_energy(distribution)
    p = scatterer.parameters

    plt.rcParams.update({
        "font.size": 10, "axes.labelsize": 10, "axes.titlesize": 11,
        "legend.fontsize": 9, "xtick.direction": "in", "ytick.direction": "in",
    })
    fig = plt.figure(figsize=(10.5, 4.2))
    gs = gridspec.GridSpec(1, 2, wspace=0.28, width_ratios=(1.6, 1.0))

    # (a) Intensity vs observation angle
    ax1 = fig.add_subplot(gs[0, 0])
    ax1.plot(shown.angle, shown.intensity, lw=1.8, color="tab:green")
    ax1.axvline(p.incident_angle, lw=0.8, ls="--", color="0.5", label="specular")
    ax1.set_xlim(float(np.min(distribution.angle)), float(np.max(distribution.angle)))
    ax1.set_ylim(0.0, 1.0)
    ax1.set_xlabel("observation angle [deg]")
    ax1.set_ylabel("relative intensity [-]")
    ax1.set_title(f"BRDF slice, Ra={p.ra:g} µm, λ={p.wavelength:g} µm, θi={p.incident_angle:g}°")
    ax1.grid(alpha=0.25)
    ax1.legend(loc="best")

    # (b) Ranked cumulative energy
    ax2 = fig.add_subplot(gs[0, 1])
    if cumulative.size:
        step = float(np.diff(distribution.angle[:2])[0]) if cumulative.size > 1 else 1.0
        ax2.plot(np.arange(1, cumulative.size + 1) * step, cumulative, lw=1.6)
    if energy is not None:
        for width, frac in zip(energy, (0.50, 0.90, 0.99)):
            ax2.axhline(frac, lw=0.6, ls=":", color="0.4")
            if width > 0:
                ax2.axvline(width, lw=0.6, ls=":", color="0.4")
        ax2.set_title(f"E50={energy.e50:g}°, E90={energy.e90:g}°, E99={energy.e99:g}°")
    ax2.set_xscale("log")
    ax2.set_xlabel("angular budget [deg]")
    ax2.set_ylabel("energy fraction [-]")
    ax2.grid(alpha=0.25)

    fig.suptitle(
        f"{scatterer.get_active_model().value} ({scatterer.get_physical_regime()}), "
        f"g={scatterer.get_g_parameter():.3e}",
        y=0.99,
    )
    fig.savefig(out_path, format="jpg", bbox_inches="tight", dpi=200)
    plt.close(fig)
    return out_path


def plot_surface(
        folder_name: str,
        file_name: str,
        profile: tuple[np.ndarray, np.ndarray],
        surface: surf.Surface,
        reflectivity: float = 0.9
) -> str:
    """
    Save the 1D profile cross-section (left) and the 3D height-field mesh
    (right) as a JPG. Mesh shading brightens with reflectivity.
    """
    # ----- IO -----
    os.makedirs(folder_name, exist_ok=True)
    if not file_name.lower().endswith(".jpg"):
        file_name += ".jpg"
    out_path = os.path.join(folder_name, file_name)

    index, heights = profile
    X, Y, Z = surface.X, surface.Y, surface.Z

    fig = plt.figure(figsize=(10.5, 4.2))
    gs = gridspec.GridSpec(1, 2, wspace=0.22)

    # (a) Profile
    ax1 = fig.add_subplot(gs[0, 0])
    ax1.plot(index, heights, lw=1.4, color="tab:purple")
    ax1.fill_between(index, heights, np.min(heights) if len(heights) else 0.0, alpha=0.2, color="tab:purple")
    ax1.set_xlabel("sample")
    ax1.set_ylabel("height [µm]")
    ax1.set_title(f"Profile (Ra={np.mean(np.abs(heights - np.mean(heights))):.3g} µm)")
    ax1.grid(alpha=0.25)

    # (b) Height field; shade lightness tracks reflectivity as in the mesh view
    shade = 0.2 + float(np.clip(reflectivity, 0.0, 1.0)) * 0.7
    ax2 = fig.add_subplot(gs[0, 1], projection="3d")
    ax2.plot_surface(X, Y, Z, rstride=1, cstride=1, linewidth=0, antialiased=True,
                     color=(shade, shade, shade), alpha=0.96)
    ax2.set_xlabel("x")
    ax2.set_ylabel("y")
    ax2.set_zlabel("z [µm]")
    ax2.set_title(f"Height field (Rq={surface.get_rq():.3g} µm)")
    ax2.view_init(elev=45, azim=-60)

    fig.savefig(out_path, format="jpg", bbox_inches="tight", dpi=200)
    plt.close(fig)
    return out_path
