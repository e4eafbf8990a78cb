# unit_tests.py
import numpy as np
import matplotlib
matplotlib.use("Agg")  # headless
import pytest

import surface_tools as surf
import scatter_tools as sct
import statistics_tools as stat
import export_tools as ex
import import_tools as impt
from brdf_tools import BRDFSimulator


# ---------------------------------------------------------------- surfaces

def test_profile_matches_recursive_smoother():
    ra, n = 0.4, 200
    index, heights = surf.generate_surface_profile(ra, n, rng=7)

    # same draws, explicit recursion
    noise = (np.random.default_rng(7).random(n) - 0.5) * 4.0 * 1.25 * ra
    expected = np.empty(n)
    prev = 0.0
    for i in range(n):
        prev = prev * 0.85 + noise[i] * 0.15
        expected[i] = prev

    assert np.array_equal(index, np.arange(n))
    assert np.allclose(heights, expected, rtol=1e-12, atol=1e-15)


def test_profile_bounds_and_randomness():
    ra = 0.8
    _, h1 = surf.generate_surface_profile(ra)
    _, h2 = surf.generate_surface_profile(ra)
    # |z| can never exceed the noise half-width 2·Rq
    assert np.all(np.abs(h1) <= 2.0 * 1.25 * ra)
    assert not np.array_equal(h1, h2)

    _, s1 = surf.generate_surface_profile(ra, 50, rng=3)
    _, s2 = surf.generate_surface_profile(ra, 50, rng=3)
    assert np.array_equal(s1, s2)


@pytest.mark.parametrize("length", [0, -5, 2.5])
def test_profile_rejects_bad_length(length):
    with pytest.raises(ValueError):
        surf.generate_surface_profile(0.1, length)


def test_smoothing_uses_truncated_neighbourhoods():
    raw = np.arange(25, dtype=float).reshape(5, 5) ** 1.5
    out = surf.smooth_height_field(raw)

    assert out[0, 0] == pytest.approx(np.mean(raw[0:2, 0:2]))      # 4 cells
    assert out[4, 4] == pytest.approx(np.mean(raw[3:5, 3:5]))      # 4 cells
    assert out[0, 2] == pytest.approx(np.mean(raw[0:2, 1:4]))      # 6 cells
    assert out[2, 4] == pytest.approx(np.mean(raw[1:4, 3:5]))      # 6 cells
    assert out[2, 2] == pytest.approx(np.mean(raw[1:4, 1:4]))      # 9 cells


def test_smoothing_single_cell_is_identity():
    assert np.array_equal(surf.smooth_height_field(np.array([[3.5]])), np.array([[3.5]]))


def test_height_field_seeded_and_bounded():
    ra, size = 0.5, 12
    field = surf.generate_height_field(ra, size, rng=11)
    raw = (np.random.default_rng(11).random((size, size)) - 0.5) * 2.0 * 1.25 * ra

    assert field.shape == (size, size)
    assert np.allclose(field, surf.smooth_height_field(raw))
    assert np.all(np.abs(field) <= 1.25 * ra)


def test_height_field_rejects_bad_size():
    with pytest.raises(ValueError):
        surf.generate_height_field(0.5, 0)


def test_surface_container_statistics():
    s = surf.generate_surface(0.8, size=30, sample_length=50.0, rng=1)
    assert s.X.shape == s.Y.shape == s.Z.shape == (30, 30)
    assert s.X[0, 0] == pytest.approx(-25.0) and s.X[-1, 0] == pytest.approx(25.0)
    assert 0.0 < s.get_ra() <= s.get_rq()

    with pytest.raises(ValueError):
        surf.Surface(np.zeros((2, 2)), np.zeros((2, 3)), np.zeros((2, 2)))


# ---------------------------------------------------------------- domain & parameters

def test_angular_domain_includes_both_ends():
    a = sct.AngularDomain(step=0.001).get_angles()
    assert a.size == 180001
    assert a[0] == -90.0 and a[-1] == 90.0
    assert np.all(np.diff(a) > 0)

    coarse = sct.AngularDomain(step=0.7).get_angles()
    assert coarse[0] == -90.0 and coarse[-1] <= 90.0
    assert coarse.size == 258


@pytest.mark.parametrize("step", [0.0, -1.0, np.nan])
def test_angular_domain_rejects_bad_step(step):
    with pytest.raises(ValueError):
        sct.AngularDomain(step=step).get_angles()
    with pytest.raises(ValueError):
        sct.calculate_scattering(0.1, 0.5, 0.0, "Auto", step)


def test_surface_parameters_validation():
    p = sct.SurfaceParameters(ra=0.8, wavelength=0.5, model_type="rayleigh_rice")
    assert p.model_type is sct.ModelType.RAYLEIGH_RICE

    for bad in (dict(ra=0.0), dict(wavelength=-1.0), dict(reflectivity=1.5),
                dict(slope_factor=0.0), dict(model_type="Lambert")):
        kwargs = dict(ra=0.8, wavelength=0.5)
        kwargs.update(bad)
        with pytest.raises(ValueError):
            sct.SurfaceParameters(**kwargs)


def test_clamp_to_practical_range():
    p = sct.SurfaceParameters(ra=10.0, wavelength=1e-3).clamp_to_practical_range()
    assert p.ra == 3.2
    assert p.wavelength == 0.01


# ---------------------------------------------------------------- scattering engine

def test_auto_regime_boundaries():
    g_smooth = sct.get_g_parameter(0.0000005, 0.5, 0.0)
    g_rough = sct.get_g_parameter(3.2, 0.5, 0.0)
    assert g_smooth < 0.01
    assert g_rough > 15
    assert sct.resolve_model("Auto", g_smooth) is sct.ModelType.RAYLEIGH_RICE
    assert sct.resolve_model("Auto", g_rough) is sct.ModelType.BECKMANN
    assert sct.resolve_model("Auto", 1.0) is sct.ModelType.HARVEY_SHACK
    # explicit requests bypass classification
    assert sct.resolve_model("Harvey-Shack", g_rough) is sct.ModelType.HARVEY_SHACK


def test_regime_labels():
    s = sct.Scatterer(sct.SurfaceParameters(ra=3.2, wavelength=0.5))
    assert s.get_active_model() is sct.ModelType.BECKMANN
    assert s.get_physical_regime() == "Diffuse"
    assert sct.get_physical_regime("Rayleigh-Rice") == "Specular"
    with pytest.raises(ValueError):
        sct.get_physical_regime("Auto")


@pytest.mark.parametrize("model", ["Auto", "Beckmann", "Rayleigh-Rice", "Harvey-Shack"])
@pytest.mark.parametrize("ra, wavelength, angle, reflectivity", [
    (0.8, 0.5, 0.0, 0.9),
    (0.0000005, 0.5, 30.0, 1.0),
    (3.2, 2.0, -60.0, 0.35),
    (0.02, 0.01, 75.0, 0.6),
])
def test_peak_equals_reflectivity(model, ra, wavelength, angle, reflectivity):
    d = sct.calculate_scattering(ra, wavelength, angle, model, 0.5, reflectivity, 1.3)
    assert np.all(np.isfinite(d.intensity))
    assert np.all(d.intensity >= 0)
    assert np.max(d.intensity) == pytest.approx(reflectivity, rel=1e-12)


def test_zero_raw_intensity_stays_zero():
    assert np.array_equal(sct.normalize_to_reflectivity(np.zeros(7), 0.9), np.zeros(7))
    d = sct.calculate_scattering(0.8, 0.5, 0.0, "Beckmann", 1.0, reflectivity=0.0)
    assert np.all(d.intensity == 0.0)


def test_degenerate_inputs_saturate():
    for ra, wavelength in ((0.8, 0.0), (0.0, 0.5), (1e-12, 1e-12)):
        d = sct.calculate_scattering(ra, wavelength, 10.0, "Auto", 1.0, 0.7)
        assert np.all(np.isfinite(d.intensity))
        assert np.max(d.intensity) == pytest.approx(0.7)


def test_beckmann_shadowed_angles_are_exactly_zero():
    for incidence in (0.0, 10.0, -45.0, 80.0):
        terms = sct.get_model_terms(0.8, 0.5, incidence, "Beckmann", 1.0, 1.0)
        raw = sct.get_raw_intensity(np.array([-120.0, -90.0, 90.0, 95.0, 180.0]), terms)
        assert np.all(raw == 0.0)

    d = sct.calculate_scattering(0.8, 0.5, 10.0, "Beckmann", 1.0, 0.9)
    assert d.intensity[0] == 0.0 and d.intensity[-1] == 0.0


def test_model_terms_precomputed_once():
    s = sct.Scatterer(sct.SurfaceParameters(ra=0.0000005, wavelength=0.5, slope_factor=2.0))
    terms = s.get_model_terms(1.0)
    assert terms.model is sct.ModelType.RAYLEIGH_RICE
    assert terms.peak_width == pytest.approx(0.2 * 0.5 / 0.0005)
    assert terms.slope == 0.005
    assert terms.specular_weight == pytest.approx(np.exp(-terms.g))

    rough = sct.get_model_terms(3.2, 0.5, 0.0, "Beckmann", 1.0, 2.0)
    assert rough.slope == pytest.approx(3.2 / 5.0 * 2.0)
    # lobe never narrower than two samples
    assert sct.get_model_terms(3.2, 0.5, 0.0, "Rayleigh-Rice", 0.25, 1.0).peak_width == 0.5


def test_harvey_shack_symmetric_incidence_scenario():
    d = sct.calculate_scattering(0.8, 0.5, 0.0, "Harvey-Shack", 1, 0.9, 1.0)
    assert len(d.angle) == 181 and len(d.intensity) == 181
    assert np.array_equal(d.angle, np.arange(-90.0, 91.0))

    peak = int(np.argmax(d.intensity))
    assert d.angle[peak] == 0.0
    assert d.intensity[peak] == pytest.approx(0.9)
    assert np.all(np.diff(d.intensity[:peak + 1]) > 0)
    assert np.all(np.diff(d.intensity[peak:]) < 0)


def test_scatterer_matches_functional_form():
    p = sct.SurfaceParameters(ra=0.05, wavelength=0.6, incident_angle=20.0,
                              model_type="Auto", reflectivity=0.8, slope_factor=1.5)
    s = sct.Scatterer(p)
    d1 = s.get_scattering_distribution(0.25)
    d2 = sct.calculate_scattering(p.ra, p.wavelength, p.incident_angle, "Auto", 0.25, 0.8, 1.5)
    assert np.array_equal(d1.angle, d2.angle)
    assert np.array_equal(d1.intensity, d2.intensity)

    sub = s.get_scattering_distribution(sct.AngularDomain(-10.0, 50.0, 0.5))
    assert sub.angle[0] == -10.0 and sub.angle[-1] == 50.0
    assert np.max(sub.intensity) == pytest.approx(0.8)


# ---------------------------------------------------------------- energy statistics

def test_energy_concentration_known_values():
    e = stat.calculate_energy_concentration(np.array([2.0, 4.0, 1.0, 3.0]), 0.5)
    # ranked: 4, 3, 2, 1 -> 40 %, 70 %, 90 %, 100 %
    assert e == stat.EnergyConcentration(1.0, 1.5, 2.0)


def test_energy_concentration_zero_total():
    assert stat.calculate_energy_concentration(np.zeros(11), 1.0) == (0.0, 0.0, 0.0)
    with pytest.raises(ValueError):
        stat.calculate_energy_concentration(np.ones(3), 0.0)


@pytest.mark.parametrize("model", ["Beckmann", "Rayleigh-Rice", "Harvey-Shack"])
def test_energy_concentration_is_ordered(model):
    step = 0.1
    d = sct.calculate_scattering(0.3, 0.5, 15.0, model, step, 0.9, 1.0)
    e = stat.calculate_energy_concentration(d, step)
    assert 0 < e.e50 <= e.e90 <= e.e99 <= 180.0 + step

    cumulative = stat.get_cumulative_energy(d)
    assert cumulative[-1] == pytest.approx(1.0)
    assert np.all(np.diff(cumulative) >= 0)


# ---------------------------------------------------------------- export / import

def test_brdf_csv_round_trip(tmp_path):
    p = sct.SurfaceParameters(ra=0.8, wavelength=0.5, model_type="Harvey-Shack",
                              reflectivity=0.9, material="Aluminum Alloy")
    d = sct.calculate_scattering(p.ra, p.wavelength, p.incident_angle, p.model_type, 0.01,
                                 p.reflectivity, p.slope_factor)
    path = ex.export_brdf_csv(str(tmp_path), None, p, d, 0.01)
    assert path.endswith("BRDF_Ra0.80_Wl0.50.csv")

    with open(path, encoding="utf-8") as f:
        lines = f.read().splitlines()
    assert lines[0] == "# AluRough BRDF Data Export"
    assert lines[9] == "Angle(deg),RelativeIntensity"
    assert len(lines) == 10 + len(d.angle)

    meta, back = impt.import_brdf_csv(str(tmp_path), "BRDF_Ra0.80_Wl0.50")
    assert meta["Material"] == "Aluminum Alloy"
    assert meta["Model"] == "Harvey-Shack"
    assert meta["Ra"] == "0.800000 um"
    assert meta["Resolution"] == "0.01 deg"
    assert float(meta["Phase Factor (g)"]) == pytest.approx(sct.get_g_parameter(0.8, 0.5, 0.0), rel=1e-4)
    assert np.array_equal(back.angle, d.angle)
    assert np.array_equal(back.intensity, d.intensity)


def test_brdf_csv_malformed_rows(tmp_path):
    bad = tmp_path / "bad.csv"
    bad.write_text("# Model: Auto\nAngle(deg),RelativeIntensity\n1.0,0.5,7\n", encoding="utf-8")
    with pytest.raises(ValueError):
        impt.import_brdf_csv(str(tmp_path), "bad.csv")
    with pytest.raises(FileNotFoundError):
        impt.import_brdf_csv(str(tmp_path), "missing")


def test_decimate_distribution():
    d = sct.calculate_scattering(0.8, 0.5, 0.0, "Auto", 0.001)
    shown = ex.decimate_distribution(d, 600)
    assert shown.angle.size == 601
    assert shown.angle[0] == -90.0 and shown.angle[-1] == 90.0

    small = sct.calculate_scattering(0.8, 0.5, 0.0, "Auto", 1.0)
    assert ex.decimate_distribution(small).angle.size == 181


# ---------------------------------------------------------------- simulator

INPUTS = """\
Surface inputs
material = Polished Aluminum
ra = 0.008             # µm
wavelength = 0.5       # µm
incident angle = 20    # deg
reflectivity = 0.9
slope factor = 1.0

Simulation inputs
model = Auto
angular step = 0.05    # deg
profile length = 120
height field size = 24
random seed = 5

Exporting inputs
export brdf? = true
plot brdf? = true
plot surface? = true
"""


def test_simulator_end_to_end(tmp_path):
    (tmp_path / "Inputs.txt").write_text(INPUTS, encoding="utf-8")
    sim = BRDFSimulator(str(tmp_path), verbose=True)
    energy = sim.simulate()

    assert sim.parameters.material == "Polished Aluminum"
    assert sim.scatterer.get_active_model() is sct.ModelType.HARVEY_SHACK
    assert len(sim.distribution.angle) == 3601
    assert np.max(sim.distribution.intensity) == pytest.approx(0.9)
    assert energy.e50 <= energy.e90 <= energy.e99
    assert sim.profile[1].shape == (120,)
    assert sim.surface.Z.shape == (24, 24)

    results = tmp_path / "results"
    assert (results / "BRDF_Ra0.01_Wl0.50.csv").is_file()
    assert (results / "brdf.jpg").is_file()
    assert (results / "surface.jpg").is_file()

    # seeded profiles are reproducible between runs
    again = BRDFSimulator(str(tmp_path))
    again.simulate()
    assert np.array_equal(again.profile[1], sim.profile[1])
    assert np.array_equal(again.surface.Z, sim.surface.Z)


def test_simulator_reports_bad_inputs(tmp_path):
    with pytest.raises(ValueError):
        BRDFSimulator(str(tmp_path))  # no Inputs.txt

    (tmp_path / "Inputs.txt").write_text(INPUTS.replace("ra = 0.008 ", "ra = -1 "), encoding="utf-8")
    with pytest.raises(ValueError):
        BRDFSimulator(str(tmp_path))

    (tmp_path / "Inputs.txt").write_text(INPUTS.replace("angular step = 0.05", ""), encoding="utf-8")
    with pytest.raises(ValueError):
        BRDFSimulator(str(tmp_path))
