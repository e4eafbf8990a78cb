import surface_tools as surf
import statistics_tools as stat
import scatter_tools as sct
import export_tools as ex
import import_tools as impt
import os
import numpy as np
import argparse


class BRDFSimulator:
    """
    Rough-metal scattering run driven by a project folder.

    This class:
      - Loads surface, sweep and export settings from <project>/Inputs.txt.
      - Synthesizes a 1D profile and a smoothed 2D height field for display.
      - Evaluates the 1D BRDF slice with the resolved scattering model.
      - Computes the 50/90/99 % energy-concentration widths.
      - Optionally writes the BRDF CSV and the BRDF / surface figures.

    Notes
    -----
    - Roughness and wavelength are in micrometers; angles in degrees.
    - Height profiles are stochastic unless 'random seed' is set; the
      scattering distribution is deterministic.
    """

    def __init__(self, project_folder: str, verbose: bool = False):
        """
        Parameters
        ----------
        project_folder : str
            Folder containing Inputs.txt; results are written beneath it.
        verbose : bool, default False
            Print progress and a run summary.
        """
        self.project_folder = project_folder
        self.verbose = verbose

        # Surface / sweep configuration.
        self.parameters = None
        self.domain = None
        self.profile_length = self.field_size = None
        self.seed = None
        # Export toggles.
        self.export_brdf = self.plot_brdf = self.plot_surface = False
        self.results_folder = "results"

        # Outputs of the last run.
        self.scatterer = None
        self.distribution = None
        self.energy = None
        self.profile = None
        self.surface = None

        try:
            impt.import_inputs(self, project_folder, "Inputs.txt")
        except Exception as e:
            raise ValueError(f"import_inputs failed: {e}") from e

        req = ("parameters", "domain", "profile_length", "field_size")
        missing = [k for k in req if getattr(self, k, None) is None]
        if missing:
            raise ValueError(f"Missing required inputs: {', '.join(missing)}")
        if self.profile_length <= 0 or self.field_size <= 0:
            raise ValueError("profile length and height field size must be > 0.")

        self.scatterer = sct.Scatterer(self.parameters)

    def simulate(self) -> stat.EnergyConcentration:
        """
        Run profile synthesis, the scattering sweep and the energy statistics,
        then export whatever the inputs file asked for.

        Returns
        -------
        EnergyConcentration
            The (e50, e90, e99) widths of the computed distribution.
        """
        p = self.parameters
        rng = np.random.default_rng(self.seed)

        self.profile = surf.generate_surface_profile(p.ra, self.profile_length, rng)
        self.surface = surf.generate_surface(p.ra, self.field_size, rng=rng)

        self.distribution = self.scatterer.get_scattering_distribution(self.domain)
        self.energy = stat.calculate_energy_concentration(self.distribution, self.domain.step)

        if self.verbose:
            print(
                f"[simulate] model={self.scatterer.get_active_model().value} "
                f"(requested {p.model_type.value}), g={self.scatterer.get_g_parameter():.4e}, "
                f"regime={self.scatterer.get_physical_regime()}"
            )
            print(
                f"[simulate] {len(self.distribution.angle)} samples, "
                f"E50={self.energy.e50:g}°, E90={self.energy.e90:g}°, E99={self.energy.e99:g}°"
            )

        out_folder = os.path.join(self.project_folder, self.results_folder)
        if self.export_brdf:
            ex.export_brdf_csv(out_folder, None, p, self.distribution, self.domain.step, verbose=self.verbose)
        if self.plot_brdf:
            path = ex.plot_brdf(out_folder, "brdf", self.distribution, self.scatterer, self.energy)
            if self.verbose:
                print(f"[simulate] Saved BRDF figure to {path}")
        if self.plot_surface:
            path = ex.plot_surface(out_folder, "surface", self.profile, self.surface, p.reflectivity)
            if self.verbose:
                print(f"[simulate] Saved surface figure to {path}")

        return self.energy


def main():
    """
    CLI entry point.

    Expects a single positional argument `project_name` pointing to the project
    folder containing Inputs.txt.
    """
    parser = argparse.ArgumentParser(description="Simulate rough-metal BRDF scattering.")
    parser.add_argument(
        "project_name",
        type=str,
        help="Project folder name (e.g. 'test_project')."
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output.")
    args = parser.parse_args()

    sim = BRDFSimulator(args.project_name, verbose=not args.quiet)
    sim.simulate()


if __name__ == "__main__":
    main()
