import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def nutrition_df():
    """Small food-nutrient table shaped like the nutrition dataset."""
    rng = np.random.RandomState(42)
    n = 60
    protein = rng.gamma(2.0, 5.0, n)
    fat = rng.gamma(1.5, 4.0, n)
    carb = rng.gamma(2.0, 10.0, n)
    vit_c = rng.gamma(1.0, 20.0, n)
    return pd.DataFrame({
        "ID": np.arange(1000, 1000 + n),
        "FoodGroup": rng.choice(["Vegetables", "Dairy", "Beef", "Cereal"], n),
        "ShortDescrip": [f"FOOD {i}" for i in range(n)],
        "Energy_kcal": 4 * protein + 9 * fat + 4 * carb + rng.normal(0, 5, n),
        "Protein_g": protein,
        "Fat_g": fat,
        "Carb_g": carb,
        "VitC_mg": vit_c,
        "VitC_USRDA": vit_c / 90.0,
        "Protein_USRDA": protein / 50.0,
    })


@pytest.fixture
def random_matrix():
    rng = np.random.RandomState(0)
    mixing = rng.normal(size=(5, 5))
    data = rng.normal(size=(40, 5)) @ mixing
    return pd.DataFrame(data, columns=list("abcde"),
                        index=pd.Index(range(40), name="row_id"))
