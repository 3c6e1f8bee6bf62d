# Default parameters for the channel filters

# fraction of the median bandpass below which a channel is flagged by TsysFilter
TSYS_TOLERANCE = 0.5

# MAD thresholds (in units of the normal-scaled MAD) for BandpassMADFilter
MAD_PTHRESH = 3.0
MAD_NTHRESH = 1.5

# numpy dtype kinds accepted for spectral samples
NUMERIC_KINDS = "iufc"
ORDERED_KINDS = "iuf"
