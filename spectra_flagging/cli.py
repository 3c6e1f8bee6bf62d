"""Flag low-power and anomalous channels of a raw spectra file."""

import logging
import sys

import click
import numpy as np
from spectra_flagging.config import apply_logging_config, filter_settings, load_config
from spectra_flagging.errors import SpectraFlaggingError
from spectra_flagging.pipeline import FilterPipeline
from spectra_flagging.spectra import to_spectra

log = logging.getLogger(__name__)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--channels",
    "-c",
    type=int,
    required=True,
    help="Number of frequency channels per time sample.",
)
@click.option(
    "--dtype",
    default="uint16",
    type=str,
    help="numpy dtype of the raw samples. Default is uint16",
)
@click.option(
    "--tolerance",
    type=float,
    default=None,
    help="Fraction of the median bandpass to clip. Overrides the configuration.",
)
@click.option(
    "-o",
    "--output",
    default="mask.npy",
    type=click.Path(dir_okay=False),
    help="Path of the .npy file the mask is written to. Default is mask.npy",
)
@click.option(
    "--channel-mask/--full-mask",
    default=False,
    help="Write one flag per channel instead of the full (samples, channels) mask.",
)
@click.option(
    "--config",
    "config_file",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with configuration overrides.",
)
def main(input_file, channels, dtype, tolerance, output, channel_mask, config_file):
    """
    Read raw sample-major spectra from INPUT_FILE, run the configured channel
    filters and save the resulting boolean mask (True = exclude).

    Example:
    spectra-flag data.raw --channels 1024 --tolerance 0.4 -o mask.npy
    """
    config = load_config(config_file)
    if tolerance is not None:
        config.tsys.tolerance = tolerance
    apply_logging_config(config)

    try:
        with open(input_file, "rb") as f:
            raw = f.read()
        spectra = to_spectra(raw, channels, dtype=dtype)
        log.info(f"Read {spectra.shape[0]} samples of {channels} channels")

        masks_to_apply, filter_params = filter_settings(config)
        pipeline = FilterPipeline(masks_to_apply, filter_params)
        rfi_mask, masked_frac = pipeline.clean(spectra)
    except SpectraFlaggingError as e:
        log.error(f"Could not flag {input_file}: {e}")
        sys.exit(1)

    if channel_mask:
        rfi_mask = rfi_mask.all(axis=0)

    np.save(output, rfi_mask)
    log.info(f"Wrote mask of shape {rfi_mask.shape} to {output}")
    click.echo(f"{masked_frac:g}")


if __name__ == "__main__":
    main()
