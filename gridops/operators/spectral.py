"""
Spectral differentiation along the periodic z axis.

Each z line is transformed with a real FFT over its ``nz`` owned points,
multiplied by ``i k`` (first derivative) or ``-k**2`` (second derivative)
with ``k = 2 pi m / zlength``, and transformed back. Modes above
``cutoff * nz`` are scaled by ``attenuation`` to suppress aliasing noise.
Staggered output (Centre <-> Zlow) applies a half-cell phase shift
``exp(i * shift * k * dz / 2)``.

Every concurrent worker needs its own coefficient buffer. The
:class:`SpectralBufferPool` holds one buffer per worker, grows on demand
before a parallel region starts and is reused across calls.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import numpy as np
import scipy.fft

from gridops.core.location import Axis
from gridops.operators.applicator import output_region
from gridops.utils.exceptions import UnsatisfiableRequestError, report_fatal
from gridops.utils.grid_logging import get_logger
from gridops.utils.parallel import LineExecutor

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from gridops.core.field import Field
    from gridops.core.mesh import Mesh

logger = get_logger(__name__)


class SpectralBufferPool:
    """
    Per-worker complex scratch buffers for spectral coefficients.

    ``ensure`` must be called before workers start; afterwards each worker
    only touches its own buffer, so ``buffer`` needs no locking.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._buffers: list[NDArray] = []
        self._n_modes = 0

    @property
    def n_workers(self) -> int:
        return len(self._buffers)

    @property
    def n_modes(self) -> int:
        return self._n_modes

    def ensure(self, n_workers: int, n_modes: int) -> None:
        """Grow the pool to at least ``n_workers`` buffers of ``n_modes`` coefficients."""
        with self._lock:
            if n_modes > self._n_modes:
                logger.debug(f"Resizing spectral buffers to {n_modes} modes")
                self._n_modes = n_modes
                self._buffers = [np.empty(n_modes, dtype=complex) for _ in self._buffers]
            while len(self._buffers) < n_workers:
                self._buffers.append(np.empty(self._n_modes, dtype=complex))

    def buffer(self, worker: int) -> NDArray:
        return self._buffers[worker]

    def clear(self) -> None:
        """Release all buffers."""
        with self._lock:
            self._buffers = []
            self._n_modes = 0


class SpectralDifferentiator:
    """
    FFT-based z derivatives.

    Args:
        mesh: Mesh with a periodic z axis
        executor: Line executor shared with the stencil applicator
        cutoff: Fraction of ``nz`` above which modes are attenuated
        attenuation: Scale factor applied to attenuated modes
    """

    def __init__(
        self,
        mesh: Mesh,
        executor: LineExecutor | None = None,
        cutoff: float = 0.4,
        attenuation: float = 1.0e-10,
    ):
        self.mesh = mesh
        self.executor = executor or LineExecutor(1)
        self.cutoff = cutoff
        self.attenuation = attenuation
        self.pool = SpectralBufferPool()

    def multiplier(self, order: int, shift: int = 0) -> NDArray:
        """Complex factor applied to the rfft coefficients of each line."""
        nz = self.mesh.z.n
        modes = np.arange(nz // 2 + 1)
        k = 2.0 * np.pi * modes / self.mesh.zlength

        factor = (1j * k) if order == 1 else -(k**2) + 0j
        factor = np.where(modes > self.cutoff * nz, factor * self.attenuation, factor)
        if shift:
            factor = factor * np.exp(0.5j * shift * k * self.mesh.dz)
        return factor

    def differentiate(self, field: Field, order: int = 1, shift: int = 0, include_boundary: bool = False) -> NDArray:
        """
        Spectral z derivative of a 3D field.

        Args:
            field: Field to differentiate
            order: 1 or 2
            shift: -1 for Centre -> Zlow, +1 for Zlow -> Centre, 0 otherwise
            include_boundary: Also fill the x and y ghost rows

        Returns:
            Derivative array with the periodic closure point filled.
        """
        if not self.mesh.z.periodic:
            report_fatal(
                UnsatisfiableRequestError(
                    "FFT differencing requires a periodic z axis",
                    operator_name="SpectralDifferentiator",
                    axis="Z",
                    method="FFT",
                    suggested_action="Select a finite difference scheme for z",
                )
            )
        if order not in (1, 2):
            raise ValueError(f"Spectral derivative order must be 1 or 2, got {order}")

        nz = self.mesh.z.n
        factor = self.multiplier(order, shift)
        n_modes = factor.shape[0]
        region = output_region(self.mesh, Axis.Z, 3, include_boundary)
        data = field.data
        result = np.zeros(self.mesh.shape3d)

        self.pool.ensure(self.executor.num_workers, n_modes)

        def run_chunk(worker: int, chunk: slice) -> None:
            coeffs = self.pool.buffer(worker)[:n_modes]
            for jx in range(chunk.start, chunk.stop):
                for jy in range(region[1].start, region[1].stop):
                    coeffs[:] = scipy.fft.rfft(data[jx, jy, :nz])
                    coeffs *= factor
                    result[jx, jy, :nz] = scipy.fft.irfft(coeffs, n=nz)
                    result[jx, jy, nz] = result[jx, jy, 0]

        self.executor.map_chunks(run_chunk, region[0].start, region[0].stop)
        return result


__all__ = ["SpectralBufferPool", "SpectralDifferentiator"]
