"""Static employee directory. No signup flow; new employees are added here
with a hash produced by ``scripts/hash_password.py``.
"""
from __future__ import annotations
from typing import Dict, List

EMPLOYEES: List[Dict[str, object]] = [
    {
        'id': 'MA001',
        'name': 'Max Mustermann',
        'password_hash': '$2a$10$kOn8HDcmTk3iV58IBicqmu.4D6koAnZsIWanCmvVCa.g5L50WJqyS',
        'roles': ['user', 'inventory_manager'],
    },
    {
        'id': 'MA002',
        'name': 'Anna Schmidt',
        'password_hash': '$2a$10$l3KAfnTZkrL./m8xCLjeQ.GYb02EhIDXsDrVbUeCaqXCqv1aMJAUS',
        'roles': ['user'],
    },
    {
        'id': 'MA003',
        'name': 'Lisa Meyer',
        'password_hash': '$2a$10$Mmfo/ciaqQF6xnx2BABCjuBeFnZXEDYgzZBnB6G8T3BBPUse93s1a',
        'roles': ['admin'],
    },
    {
        'id': 'MA004',
        'name': 'Josef Toledo',
        'password_hash': '$2a$10$0wF6cXbQGlbeqzA101HEC.JmAb1vPlW2KmTOwE.mgTFD0uKx2.hwq',
        'roles': ['admin'],
    },
    {
        'id': 'MA005',
        'name': 'Doktor Cheerio',
        'password_hash': '$2a$10$ZAQ9OGdMeUElGlBpwjOmy./HUZUsYpAqeXJMlvF6feICGthSHJYD2',
        'roles': ['admin'],
    },
]
