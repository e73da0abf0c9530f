"""
Loudness-consistency thresholds (original vs rendered, reference channel 0).
"""
LOUDNESS_THRESHOLDS = {
    "segments": 20,
    "silence_rms": 0.001,       # original RMS below this -> ratio fixed to 1.0
    "ratio_min": 0.1,           # ratios outside (min, max) are discarded as outliers
    "ratio_max": 10.0,
    "consistency_min": 0.7,     # below -> needs correction
    "average_deviation_max": 0.3,  # |avg - 1| above -> needs correction
}

GAIN_CORRECTION = {
    "target_ratio": 1.05,       # 5% louder than the original
    "gain_min": 0.8,
    "gain_max": 2.0,
    "default_gain": 1.1,
}
