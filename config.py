# config.py
import os

RANDOM_STATE = 42
VERBOSE = True

# Training
USE_LDA = False
USE_ICA = False
DISTANCE_METRIC = 'euclidean'

# PCA: None keeps every component above the eigenvalue tolerance
PCA_COMPONENTS = None
PCA_EIGENVALUE_TOLERANCE = 1e-10

# LDA: None keeps c - 1 components
LDA_COMPONENTS = None
LDA_FISHERFACE_REDUCTION = True
LDA_REGULARIZATION = 1e-3
LDA_CONDITION_LIMIT = 1e12

# ICA: seed None draws fresh entropy on every run
ICA_SEED = RANDOM_STATE
ICA_MAX_ITERATIONS = 1000
ICA_CONVERGENCE_TOLERANCE = 1e-6
ICA_NONLINEARITY = 'pow3'

# Images
IMAGE_SIZE = None
IMAGE_NORMALIZE = 'scale'
IMAGE_EXTENSIONS = ('.pgm', '.ppm', '.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff')

# Evaluation
TEST_SIZE = 0.25
EVALUATION_ALGORITHMS = ['pca', 'pca+lda', 'pca+ica', 'pca+lda+ica']
EVALUATION_METRICS = ['euclidean', 'cosine', 'manhattan']
BOOTSTRAP_ITERATIONS = 1000

PLOT_STYLE = 'seaborn-v0_8-whitegrid'
PLOT_DPI = 150
PLOT_FIGSIZE_SMALL = (8, 6)
PLOT_FIGSIZE_MEDIUM = (12, 8)

N_EIGENFACES_DISPLAY = 12

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_PATH = os.path.join(BASE_DIR, "data")
MODELS_PATH = os.path.join(BASE_DIR, "results", "models")
OUTPUT_PATH = os.path.join(BASE_DIR, "results", "figures")
METRICS_PATH = os.path.join(BASE_DIR, "results", "metrics")

for path in [DATA_PATH, MODELS_PATH, OUTPUT_PATH, METRICS_PATH]:
    os.makedirs(path, exist_ok=True)

LOG_FILE = os.path.join(BASE_DIR, "results", "facespace.log")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

TRAINING_SET_FILE = os.path.join(MODELS_PATH, "training_set.json")
TRAINING_DATA_FILE = os.path.join(MODELS_PATH, "training_data.joblib")

def get_config_summary():
    return {
        'Training': {
            'LDA': USE_LDA,
            'ICA': USE_ICA,
            'Distance': DISTANCE_METRIC
        },
        'PCA': {
            'Components': PCA_COMPONENTS if PCA_COMPONENTS is not None else 'n - 1',
            'Eigenvalue Tolerance': PCA_EIGENVALUE_TOLERANCE
        },
        'LDA': {
            'Components': LDA_COMPONENTS if LDA_COMPONENTS is not None else 'c - 1',
            'Fisherface Reduction': LDA_FISHERFACE_REDUCTION,
            'Regularization': LDA_REGULARIZATION,
            'Condition Limit': LDA_CONDITION_LIMIT
        },
        'ICA': {
            'Seed': ICA_SEED,
            'Max Iterations': ICA_MAX_ITERATIONS,
            'Tolerance': ICA_CONVERGENCE_TOLERANCE,
            'Nonlinearity': ICA_NONLINEARITY
        },
        'Images': {
            'Size': IMAGE_SIZE,
            'Normalize': IMAGE_NORMALIZE
        }
    }

def print_config():
    print("CONFIGURATION")
    summary = get_config_summary()
    for section, params in summary.items():
        print(f"\n{section}:")
        for key, value in params.items():
            print(f"  {key}: {value}")
