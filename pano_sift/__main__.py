import argparse
import logging

import numpy as np

import cv2

from pano_sift.constants import SIFT_INTVLS, SIFT_SIGMA
from pano_sift.sift import SIFT_create

logger = logging.getLogger('pano_sift')


def main(image_path: str, octaves=None, scales=SIFT_INTVLS, sigma=SIFT_SIGMA, output=None):
    image = cv2.imread(image_path, cv2.IMREAD_COLOR)
    if image is None:
        raise SystemExit(f'could not read image {image_path}')

    sift = SIFT_create(num_octaves=octaves, num_octave_intervals=scales, sigma=sigma)
    keypoints, descriptors = sift.detectAndCompute(image)
    logger.info('%s: %d keypoints', image_path, len(keypoints))

    if output:
        points = np.array([keypoint.imagePoint() for keypoint in keypoints]).reshape(-1, 2)
        angles = np.array([keypoint.orientation for keypoint in keypoints])
        octave_ids = np.array([keypoint.octave for keypoint in keypoints], dtype=int)
        np.savez(output, points=points, angles=angles, octaves=octave_ids, descriptors=descriptors)
        logger.info('Saved features to %s', output)

    return keypoints, descriptors


if __name__ == '__main__':
    parser = argparse.ArgumentParser(
        description='Extract SIFT keypoints and descriptors from an image.'
    )
    parser.add_argument('image', help='path of the input image')
    parser.add_argument('--octaves', type=int, default=None,
                        help='number of pyramid octaves (derived from the image size by default)')
    parser.add_argument('--scales', type=int, default=SIFT_INTVLS,
                        help='sampled intervals per octave')
    parser.add_argument('--sigma', type=float, default=SIFT_SIGMA,
                        help='base smoothing sigma')
    parser.add_argument('--output', default=None,
                        help='write points, angles and descriptors to this .npz file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='log every pipeline stage')

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')

    main(args.image, args.octaves, args.scales, args.sigma, args.output)
