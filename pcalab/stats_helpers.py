"""Correlation checks run before committing to PCA."""
import numpy as np
import pandas as pd
from scipy import stats


def descriptive_stats(series):
    """Location, spread and shape of one variable before it is scaled away."""
    q25, median, q75 = series.quantile([0.25, 0.5, 0.75])
    return {
        "count": int(series.count()),
        "mean": series.mean(),
        "std": series.std(),
        "min": series.min(),
        "q25": q25,
        "median": median,
        "q75": q75,
        "max": series.max(),
        "cv": series.std() / abs(series.mean()) if series.mean() else np.nan,
        "skewness": series.skew(),
    }


def correlation_matrix(df, method="pearson"):
    """Pairwise correlations between the numeric columns of ``df``."""
    return df.select_dtypes(include=[np.number]).corr(method=method)


def strong_correlations(df, threshold=0.8, method="pearson"):
    """List variable pairs with |r| >= threshold, strongest first."""
    corr = correlation_matrix(df, method=method)
    cols = corr.columns
    rows = []
    for i in range(len(cols)):
        for j in range(i + 1, len(cols)):
            r = corr.iat[i, j]
            if abs(r) >= threshold:
                rows.append({"var1": cols[i], "var2": cols[j], "r": r})
    out = pd.DataFrame(rows, columns=["var1", "var2", "r"])
    return out.reindex(out["r"].abs().sort_values(ascending=False).index).reset_index(drop=True)


def bartlett_sphericity(df):
    """Bartlett's test that the correlation matrix is the identity.

    A small p-value means the variables are correlated enough for PCA to
    compress them; a large one means each variable mostly stands alone.
    """
    numeric = df.select_dtypes(include=[np.number]).dropna()
    n, p = numeric.shape
    corr = np.corrcoef(numeric.values, rowvar=False)
    sign, logdet = np.linalg.slogdet(corr)
    if sign <= 0:
        # Singular correlation matrix: collinear columns, sphericity rejected outright.
        return {"chi2": np.inf, "dof": p * (p - 1) // 2, "p_value": 0.0}
    chi2 = -(n - 1 - (2 * p + 5) / 6) * logdet
    dof = p * (p - 1) // 2
    return {"chi2": chi2, "dof": dof, "p_value": stats.chi2.sf(chi2, dof)}
