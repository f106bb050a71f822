import math

# default sigma of the base level
SIFT_SIGMA = 1.6

# default number of sampled intervals per octave
SIFT_INTVLS = 3

# gaussian kernel values below this are cut off
SIFT_GAUSS_DIE_OFF = 0.001

# threshold on |D(x)| of an interpolated extremum
SIFT_CONTR_THR = 0.03

# fraction of the contrast threshold used to pre-filter candidate pixels
SIFT_PRELIM_CONTR_FCTR = 0.5

# default threshold on keypoint ratio of principle curvatures
SIFT_CURV_THR = 10.

# width of border in which to ignore keypoints
SIFT_IMG_BORDER = 5

# maximum steps of keypoint interpolation before failure
SIFT_MAX_INTERP_STEPS = 5

# default number of bins in histogram for orientation assignment
SIFT_ORI_HIST_BINS = 36

# determines gaussian sigma for orientation assignment
SIFT_ORI_SIG_FCTR = 1.5

# determines the radius of the region used in orientation assignment
SIFT_ORI_RADIUS = 3     # * SIFT_ORI_SIG_FCTR

# number of passes of the [0.25, 0.5, 0.25] smoothing over the histogram
SIFT_ORI_SMOOTH_PASSES = 2

# orientation magnitude relative to max that results in new feature
SIFT_ORI_PEAK_RATIO = 0.8

# default width of descriptor histogram array
SIFT_DESCR_WIDTH = 4

# default number of bins per histogram in descriptor array
SIFT_DESCR_HIST_BINS = 8

# determines the size of a single descriptor orientation histogram
SIFT_DESCR_SCL_FCTR = 3.

# threshold on magnitude of elements of descriptor vector
SIFT_DESCR_MAG_THR = 0.2

# gradient field sentinel values for border pixels
SIFT_BORDER_MAG = 0.
SIFT_BORDER_ORI = math.pi

FLOAT_TOLERANCE = 1e-7
