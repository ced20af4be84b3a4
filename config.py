# Enterocast Configuration
# Settings for data loading, feature engineering, modeling and reporting

# Data Sources and Paths

# Beach water-quality samples (one row per site visit)
WATER_QUALITY_PATH = "./data/raw/water_quality.csv"

# Daily weather observations for the same area
WEATHER_PATH = "./data/raw/weather.csv"

# Optional CSV destination for the results table (None = console only)
RESULTS_OUTPUT_PATH = None

# Source column name -> canonical column name
WATER_QUALITY_COLUMNS = {
    "Swim Site": "site",
    "Date": "date",
    "Enterococci (cfu/100ml)": "enterococci",
    "Water temperature (°C)": "water_temp",
    "Conductivity (mS/cm)": "conductivity",
}

WEATHER_COLUMNS = {
    "Date": "date",
    "Rainfall amount (millimetres)": "precip",
}

# Source dates are written day-first (e.g. 17/02/2021)
DATE_DAYFIRST = True

# Join Configuration

# Behaviour on duplicate (site, date) water-quality keys or duplicate weather dates:
# "fan_out" keeps every combination (logged), "error" aborts the run
DUPLICATE_KEY_POLICY = "fan_out"

# Feature Configuration

# Regulatory single-sample limit for enterococci (CFU/100mL)
EXCEEDANCE_THRESHOLD = 200

# Trailing precipitation windows, counted in observations per site
ROLLING_PRECIP_WINDOWS = [3, 7]

# Southern-hemisphere seasons, in fixed category order
SEASON_ORDER = ["Summer", "Autumn", "Winter", "Spring"]
SEASON_BY_MONTH = {
    12: "Summer", 1: "Summer", 2: "Summer",
    3: "Autumn", 4: "Autumn", 5: "Autumn",
    6: "Winter", 7: "Winter", 8: "Winter",
    9: "Spring", 10: "Spring", 11: "Spring",
}

# Reserved level for categories not seen when a vocabulary was recorded
NOVEL_LEVEL = "new"

# Feature engineering toggles
USE_SITE_ENCODING = True
USE_LOG_TARGET_TRANSFORM = False

NUMERIC_PREDICTORS = [
    "lag1_precip",
    "roll3_precip",
    "roll7_precip",
    "lag1_temp",
    "lag1_cond",
]
CATEGORICAL_PREDICTORS = ["dow", "month", "season"]

# Split Configuration

# Earliest share of rows used for training; the rest is the test suffix
TRAIN_FRACTION = 0.8

# Model Configuration

# ML algorithm: "rf" (scikit-learn random forest) or "xgboost" (XGBoost random-forest mode)
FORECAST_MODEL = "rf"

RANDOM_SEED = 42

RF_REGRESSION_PARAMS = {
    "n_estimators": 500,
    "min_samples_leaf": 1,
    "max_features": 1.0,
}

RF_CLASSIFICATION_PARAMS = {
    "n_estimators": 500,
    "min_samples_leaf": 1,
    "max_features": "sqrt",
}

XGBRF_PARAMS = {
    "n_estimators": 500,
    "max_depth": 8,
    "subsample": 0.8,
    "colsample_bynode": 0.8,
    "tree_method": "hist",
}

# Evaluation Configuration

# Fixed operating point for headline accuracy
DEFAULT_DECISION_THRESHOLD = 0.5

# Candidate thresholds for the F1 sweep: 0.00, 0.05, ..., 1.00
THRESHOLD_SWEEP_START = 0.0
THRESHOLD_SWEEP_STOP = 1.0
THRESHOLD_SWEEP_STEP = 0.05

# Imbalance Correction

# SMOTE neighbours (capped at minority_count - 1 at fit time)
SMOTE_K_NEIGHBORS = 5

# Logging

LOG_LEVEL = "INFO"
ENABLE_FILE_LOGGING = False
LOG_DIR = "./logs"
