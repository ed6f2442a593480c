"""
Frequency-domain transforms: Haar wavelet, DFT and DCT.
"""
