"""
Face recognition with statistical subspace projection.

This package provides modules for:
- preprocessing: Loading labelled face images as column vectors
- pca: Eigenface basis (PCA via the Gram-matrix eigendecomposition)
- lda: Fisherface basis computed in PCA coordinates
- ica: Independent components (FastICA, deflation) in PCA coordinates
- distance: Pluggable distance metrics for nearest-neighbor matching
- database: Training, persistence and recognition
- persistence: Training set descriptor and training data blob
- metrics: Evaluation metrics and reporting
- evaluation: Held-out comparison of algorithms and metrics
- utils: Visualization and logging helpers
"""
