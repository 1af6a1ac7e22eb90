"""cuecraft — signal-driven timing for video compositions.

Select impact beats from audio analysis to drive clip cuts (beats,
timeline) and segment transcripts into display parts with emphasized
words and closed gaps (captions). Heuristic constants are profiles
that can be loaded from YAML.
"""
