"""
Partial dependence tables
=========================

This example computes partial dependence and individual conditional
expectation (ICE) tables :footcite:t:`friedman2001greedy,goldstein2015peeking`
for a regressor trained on the diabetes dataset and for a classifier trained on
the iris dataset. The tables are pandas DataFrames, ready to be plotted with any
library.

References
----------
.. footbibliography::

"""

# %%
# Regression on the diabetes dataset
# ----------------------------------
# A gradient boosting model predicts the disease progression one year after
# baseline.
from sklearn.datasets import load_diabetes
from sklearn.ensemble import HistGradientBoostingRegressor

X, y = load_diabetes(return_X_y=True, as_frame=True)
regressor = HistGradientBoostingRegressor(max_iter=100, random_state=0).fit(X, y)

# %%
# The partial dependence on the body mass index is the average prediction when
# the body mass index of every patient is set to a grid value.
from pdstat import PartialDependence, RegressorAdapter

pd_bmi = PartialDependence(RegressorAdapter(regressor), "bmi", grid_resolution=20)
table = pd_bmi.fit_compute(X)
print(table.head())

# %%
# The rug gives the deciles of the training values: a grid value far from them
# is an extrapolation of the model.
print(pd_bmi.rug_["bmi"])

# %%
# Individual conditional expectation keeps one curve per patient. Centered
# curves start at zero and show the heterogeneity of the effect.
ice = PartialDependence(
    RegressorAdapter(regressor),
    "bmi",
    kind="individual",
    centered=True,
    grid_resolution=20,
    n_jobs=2,
).fit_compute(X)
spread = ice.groupby("bmi")["value"].agg(["min", "mean", "max"])
print(spread.tail())

# %%
# Two-way partial dependence inside the convex hull
# -------------------------------------------------
# With two features, grid points outside the convex hull of the training data
# can be flagged instead of being silently extrapolated.
from pdstat import partial_dependence

table_2d = partial_dependence(
    RegressorAdapter(regressor),
    X,
    ["bmi", "bp"],
    grid_resolution=10,
    restrict_to_hull=True,
    hull_policy="mark",
)
print(table_2d["extrapolated"].value_counts())

# %%
# Classification on the iris dataset
# ----------------------------------
# For classifiers, the score of a class is its centered log-odds by default.
from sklearn.datasets import load_iris
from sklearn.linear_model import LogisticRegression

from pdstat import ClassifierAdapter

X, y = load_iris(return_X_y=True, as_frame=True)
classifier = LogisticRegression(max_iter=1000).fit(X, y)
for label in [0, 1, 2]:
    table = partial_dependence(
        ClassifierAdapter(classifier),
        X,
        "petal length (cm)",
        which_class=label,
        grid_resolution=5,
    )
    print(f"class {label}:", table["value"].round(2).tolist())

# %%
# The probability scale is also available.
table = partial_dependence(
    ClassifierAdapter(classifier),
    X,
    "petal length (cm)",
    scale="probability",
    which_class=2,
    grid_resolution=5,
)
print(table)
