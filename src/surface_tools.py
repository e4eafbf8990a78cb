import numpy as np
import scipy as sp
import constants as cst


class Surface:
    """
    Container for a square height field Z(X, Y) used for 3D display and for
    quick roughness statistics of the synthesized patch.

    Heights and coordinates share the same unit as the roughness they were
    generated from (micrometers for heights; the lateral extent is purely a
    display scale).
    """

    def __init__(self, X: np.ndarray, Y: np.ndarray, Z: np.ndarray):
        """
        Parameters
        ----------
        X, Y, Z : np.ndarray
            2D arrays of identical shape (n, n). X[i,j] and Y[i,j] are grid
            coordinates; Z[i,j] is the surface height.

        Raises
        ------
        ValueError
            If inputs are not 2D or shapes do not match.
        """
        X = np.asarray(X, dtype=float)
        Y = np.asarray(Y, dtype=float)
        Z = np.asarray(Z, dtype=float)

        if X.ndim != 2 or Y.ndim != 2 or Z.ndim != 2:
            raise ValueError("X, Y, Z must be 2D arrays.")
        if X.shape != Y.shape or X.shape != Z.shape:
            raise ValueError("X, Y, Z must have identical shapes.")

        self.X = X
        self.Y = Y
        self.Z = Z

    def get_heights(self) -> np.ndarray:
        """Flattened heights about the mean plane."""
        return (self.Z - np.mean(self.Z)).ravel()

    def get_ra(self) -> float:
        """Arithmetic mean roughness of the patch."""
        return float(np.mean(np.abs(self.get_heights())))

    def get_rq(self) -> float:
        """RMS roughness of the patch."""
        return float(np.sqrt(np.mean(self.get_heights() ** 2)))


def _as_generator(rng: np.random.Generator | int | None) -> np.random.Generator:
    # default_rng passes an existing Generator through unchanged
    return np.random.default_rng(rng)


def generate_surface_profile(
        ra: float,
        length: int = 200,
        rng: np.random.Generator | int | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Synthesize a correlated 1D height profile for a surface of roughness Ra.

    Uniform noise of half-width 2·Rq (Rq = 1.25·Ra) is passed through a
    first-order recursive smoother:

        z[n] = (1 - α) · z[n-1] + α · noise[n],   z[-1] = 0,   α = 0.15

    so adjacent samples form a continuous random walk rather than white noise.

    Parameters
    ----------
    ra : float
        Arithmetic mean roughness (µm).
    length : int, default 200
        Number of profile samples.
    rng : np.random.Generator | int | None, optional
        Random source or seed. None draws from a fresh unseeded generator.

    Returns
    -------
    (index, height) : tuple[np.ndarray, np.ndarray]
        Sample indices 0..length-1 and the corresponding heights (µm).
    """
    if int(length) != length or length <= 0:
        raise ValueError("length must be a positive integer.")
    length = int(length)

    rq = cst.RA_TO_RQ * float(ra)
    alpha = cst.PROFILE_DAMPING
    gen = _as_generator(rng)

    noise = (gen.random(length) - 0.5) * cst.PROFILE_NOISE_SPAN * rq
    heights = sp.signal.lfilter([alpha], [1.0, -(1.0 - alpha)], noise)

    index = np.arange(length)
    return index, heights


def smooth_height_field(raw: np.ndarray) -> np.ndarray:
    """
    One 3x3 box-blur pass with truncated boundaries.

    Each cell becomes the mean of itself and the neighbours that exist:
    corners average 4 cells, edges 6, interior cells 9. Nothing is wrapped
    and no padding enters the mean.
    """
    raw = np.asarray(raw, dtype=float)
    if raw.ndim != 2:
        raise ValueError("raw must be a 2D array.")

    kernel = np.ones((3, 3))
    total = sp.ndimage.convolve(raw, kernel, mode="constant", cval=0.0)
    count = sp.ndimage.convolve(np.ones_like(raw), kernel, mode="constant", cval=0.0)
    return total / count


def generate_height_field(
        ra: float,
        size: int = 64,
        rng: np.random.Generator | int | None = None,
) -> np.ndarray:
    """
    Synthesize a smoothed size×size height grid for a surface of roughness Ra.

    Every cell first receives independent uniform noise of half-width Rq
    (Rq = 1.25·Ra); the grid is then smoothed once with `smooth_height_field`.

    Parameters
    ----------
    ra : float
        Arithmetic mean roughness (µm).
    size : int, default 64
        Number of cells per side.
    rng : np.random.Generator | int | None, optional
        Random source or seed. None draws from a fresh unseeded generator.

    Returns
    -------
    np.ndarray
        Array of shape (size, size) with heights in µm.
    """
    if int(size) != size or size <= 0:
        raise ValueError("size must be a positive integer.")
    size = int(size)

    rq = cst.RA_TO_RQ * float(ra)
    gen = _as_generator(rng)

    raw = (gen.random((size, size)) - 0.5) * cst.FIELD_NOISE_SPAN * rq
    return smooth_height_field(raw)


def generate_surface(
        ra: float,
        size: int = 50,
        sample_length: float = 50.0,
        rng: np.random.Generator | int | None = None,
) -> Surface:
    """
    Height field from `generate_height_field` placed on a centred square grid
    of side `sample_length`, ready for 3D plotting.
    """
    Z = generate_height_field(ra, size, rng)
    x = np.linspace(-0.5 * sample_length, 0.5 * sample_length, Z.shape[0])
    X, Y = np.meshgrid(x, x, indexing="ij")
    return Surface(X, Y, Z)
