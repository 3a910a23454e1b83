"""
MET department names and their collection API IDs.
"""

DEPARTMENT_IDS = {
    'American Decorative Arts': 1,
    'Ancient Near Eastern Art': 3,
    'Arms and Armor': 4,
    'Arts of Africa, Oceania, and the Americas': 5,
    'Asian Art': 6,
    'The Cloisters': 7,
    'The Costume Institute': 8,
    'Drawings and Prints': 9,
    'Egyptian Art': 10,
    'European Paintings': 11,
    'European Sculpture and Decorative Arts': 12,
    'Greek and Roman Art': 13,
    'Islamic Art': 14,
    'The Robert Lehman Collection': 15,
    'The Libraries': 16,
    'Medieval Art': 17,
    'Musical Instruments': 18,
    'Photographs': 19,
    'Modern Art': 21,
}


def get_department_id(department_name):
    """
    Look up the API ID for a department name.

    Args:
        department_name (str): Department as returned in an object's data

    Returns:
        int: Department ID, or None for unknown or empty names
    """
    if not department_name:
        return None
    return DEPARTMENT_IDS.get(department_name.strip())
