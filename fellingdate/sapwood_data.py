"""
Bundled sapwood datasets
========================

Frequency tables of sapwood-ring counts (ring count -> number of samples)
for oak (Quercus spp.) from several regions of Europe.

The tables are synthetic. Each one approximates the central tendency and
spread of a regional sapwood estimate, but none of them reproduces
published counts, hence the ``_approx`` suffix on every name. They serve
as working defaults and test data. For publication, load the original
counts with ``catalog.load_sapwood_csv()``.
"""

SAPWOOD_DATASETS = {
    'Hollstein_1980_approx': {
        'region': 'Western Germany',
        'species': 'Quercus spp.',
        'citation': 'Synthetic; modelled on the West German oak estimate '
                    'of Hollstein (1980). Not the published counts.',
        'counts': {
            9: 1, 10: 2, 11: 6, 12: 11, 13: 18, 14: 26, 15: 33, 16: 39,
            17: 43, 18: 44, 19: 43, 20: 40, 21: 36, 22: 31, 23: 26, 24: 21,
            25: 17, 26: 13, 27: 10, 28: 8, 29: 6, 30: 4, 31: 3, 32: 2,
            33: 2, 34: 1, 35: 1, 36: 1,
        },
    },
    'Wazny_1990_approx': {
        'region': 'Poland',
        'species': 'Quercus spp.',
        'citation': 'Synthetic; modelled on the Polish oak estimate of '
                    'Wazny (1990). Not the published counts.',
        'counts': {
            6: 1, 7: 3, 8: 7, 9: 14, 10: 21, 11: 28, 12: 34, 13: 37,
            14: 37, 15: 36, 16: 33, 17: 29, 18: 25, 19: 21, 20: 17, 21: 14,
            22: 11, 23: 8, 24: 7, 25: 5, 26: 4, 27: 3, 28: 2, 29: 2,
            30: 1, 31: 1, 32: 1, 33: 1,
        },
    },
    'Hillam_1987_approx': {
        'region': 'England and Wales',
        'species': 'Quercus spp.',
        'citation': 'Synthetic; modelled on the English oak estimate of '
                    'Hillam et al. (1987). Not the published counts.',
        'counts': {
            13: 1, 14: 2, 15: 3, 16: 4, 17: 5, 18: 6, 19: 8, 20: 9,
            21: 10, 22: 10, 23: 11, 24: 11, 25: 11, 26: 10, 27: 10, 28: 9,
            29: 9, 30: 8, 31: 7, 32: 6, 33: 6, 34: 5, 35: 4, 36: 4,
            37: 3, 38: 3, 39: 2, 40: 2, 41: 2, 42: 1, 43: 1, 44: 1,
            45: 1, 46: 1, 47: 1, 48: 1,
        },
    },
    'Sohar_2012_ELL_c_approx': {
        'region': 'Estonia and Latvia',
        'species': 'Quercus robur',
        'citation': 'Synthetic; modelled on the eastern Baltic oak estimate '
                    'of Sohar et al. (2012). Not the published counts.',
        'counts': {
            6: 2, 7: 5, 8: 10, 9: 16, 10: 21, 11: 24, 12: 25, 13: 24,
            14: 21, 15: 18, 16: 15, 17: 12, 18: 9, 19: 7, 20: 5, 21: 4,
            22: 3, 23: 2, 24: 2, 25: 1, 26: 1, 27: 1,
        },
    },
    'Brathen_1982_approx': {
        'region': 'Scandinavia',
        'species': 'Quercus spp.',
        'citation': 'Synthetic Scandinavian oak table. No published source '
                    'is reproduced.',
        'counts': {
            4: 1, 5: 3, 6: 7, 7: 12, 8: 17, 9: 20, 10: 20, 11: 19,
            12: 17, 13: 14, 14: 12, 15: 9, 16: 7, 17: 5, 18: 4, 19: 3,
            20: 2, 21: 2, 22: 1, 23: 1, 24: 1,
        },
    },
    'Haneca_2009_approx': {
        'region': 'Flanders (Belgium)',
        'species': 'Quercus spp.',
        'citation': 'Synthetic; modelled on the Flemish oak estimates '
                    'reviewed by Haneca et al. (2009). Not the published counts.',
        'counts': {
            7: 2, 8: 5, 9: 12, 10: 22, 11: 34, 12: 45, 13: 53, 14: 58,
            15: 59, 16: 57, 17: 52, 18: 46, 19: 40, 20: 33, 21: 27, 22: 22,
            23: 17, 24: 13, 25: 10, 26: 8, 27: 6, 28: 4, 29: 3, 30: 2,
            31: 2, 32: 1, 33: 1, 34: 1, 35: 1,
        },
    },
}

DATASET_NOTES = "synthetic table, not published counts"
