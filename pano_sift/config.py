from typing import Optional

from pano_sift.constants import (
    SIFT_SIGMA,
    SIFT_INTVLS,
    SIFT_GAUSS_DIE_OFF,
    SIFT_CONTR_THR,
    SIFT_PRELIM_CONTR_FCTR,
    SIFT_CURV_THR,
    SIFT_IMG_BORDER,
    SIFT_MAX_INTERP_STEPS,
    SIFT_ORI_HIST_BINS,
    SIFT_ORI_SIG_FCTR,
    SIFT_ORI_RADIUS,
    SIFT_ORI_SMOOTH_PASSES,
    SIFT_ORI_PEAK_RATIO,
    SIFT_DESCR_WIDTH,
    SIFT_DESCR_HIST_BINS,
    SIFT_DESCR_SCL_FCTR,
    SIFT_DESCR_MAG_THR,
)


def _pick(value, default):
    return default if value is None else value


class SIFTConfig:
    """Numeric policy of the pipeline.

    Every value left as ``None`` falls back to the matching ``SIFT_*`` constant.
    ``octaves=None`` means the octave count is derived from the input image size.
    """

    def __init__(self,
                 octaves: Optional[int] = None,
                 scales: Optional[int] = None,
                 sigma: Optional[float] = None,
                 contrast_threshold: Optional[float] = None,
                 curvature_threshold: Optional[float] = None,
                 border: Optional[int] = None,
                 max_interp_steps: Optional[int] = None,
                 gaussian_die_off: Optional[float] = None,
                 ori_hist_bins: Optional[int] = None,
                 ori_sig_factor: Optional[float] = None,
                 ori_radius_factor: Optional[float] = None,
                 ori_smooth_passes: Optional[int] = None,
                 ori_peak_ratio: Optional[float] = None,
                 descr_width: Optional[int] = None,
                 descr_hist_bins: Optional[int] = None,
                 descr_scale_factor: Optional[float] = None,
                 descr_mag_threshold: Optional[float] = None) -> None:

        self.octaves: Optional[int] = octaves
        self.scales: int = _pick(scales, SIFT_INTVLS)
        self.sigma: float = _pick(sigma, SIFT_SIGMA)

        self.contrast_threshold: float = _pick(contrast_threshold, SIFT_CONTR_THR)
        self.curvature_threshold: float = _pick(curvature_threshold, SIFT_CURV_THR)
        self.border: int = _pick(border, SIFT_IMG_BORDER)
        self.max_interp_steps: int = _pick(max_interp_steps, SIFT_MAX_INTERP_STEPS)
        self.gaussian_die_off: float = _pick(gaussian_die_off, SIFT_GAUSS_DIE_OFF)

        self.ori_hist_bins: int = _pick(ori_hist_bins, SIFT_ORI_HIST_BINS)
        self.ori_sig_factor: float = _pick(ori_sig_factor, SIFT_ORI_SIG_FCTR)
        self.ori_radius_factor: float = _pick(ori_radius_factor, SIFT_ORI_RADIUS)
        self.ori_smooth_passes: int = _pick(ori_smooth_passes, SIFT_ORI_SMOOTH_PASSES)
        self.ori_peak_ratio: float = _pick(ori_peak_ratio, SIFT_ORI_PEAK_RATIO)

        self.descr_width: int = _pick(descr_width, SIFT_DESCR_WIDTH)
        self.descr_hist_bins: int = _pick(descr_hist_bins, SIFT_DESCR_HIST_BINS)
        self.descr_scale_factor: float = _pick(descr_scale_factor, SIFT_DESCR_SCL_FCTR)
        self.descr_mag_threshold: float = _pick(descr_mag_threshold, SIFT_DESCR_MAG_THR)

        self._validate()

    def _validate(self):
        if self.octaves is not None and self.octaves < 1:
            raise ValueError(f'octaves must be >= 1, got {self.octaves}')
        if self.scales < 1:
            raise ValueError(f'scales must be >= 1, got {self.scales}')
        if self.sigma <= 0:
            raise ValueError(f'sigma must be > 0, got {self.sigma}')
        if self.border < 1:
            # the 3x3 neighbourhood of a scanned pixel has to stay inside the image
            raise ValueError(f'border must be >= 1, got {self.border}')
        if self.max_interp_steps < 1:
            raise ValueError(f'max_interp_steps must be >= 1, got {self.max_interp_steps}')
        for name in ('contrast_threshold', 'curvature_threshold', 'gaussian_die_off',
                     'ori_sig_factor', 'ori_radius_factor', 'ori_peak_ratio',
                     'descr_scale_factor', 'descr_mag_threshold'):
            if getattr(self, name) <= 0:
                raise ValueError(f'{name} must be > 0, got {getattr(self, name)}')
        for name in ('ori_hist_bins', 'descr_width', 'descr_hist_bins'):
            if getattr(self, name) < 1:
                raise ValueError(f'{name} must be >= 1, got {getattr(self, name)}')
        if self.ori_smooth_passes < 0:
            raise ValueError(f'ori_smooth_passes must be >= 0, got {self.ori_smooth_passes}')

    @property
    def prelim_contrast_threshold(self) -> float:
        return SIFT_PRELIM_CONTR_FCTR * self.contrast_threshold / self.scales

    @property
    def edge_ratio_limit(self) -> float:
        r = self.curvature_threshold
        return (r + 1) ** 2 / r

    def __repr__(self) -> str:
        return (f'SIFTConfig(octaves={self.octaves}, scales={self.scales}, sigma={self.sigma}, '
                f'contrast_threshold={self.contrast_threshold}, '
                f'curvature_threshold={self.curvature_threshold}, border={self.border})')
