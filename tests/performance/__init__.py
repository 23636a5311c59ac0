"""
Performance testing package (Locust-based).

Contains Locust user classes and helper utilities that together provide
load testing for the task-management JSON API under ``/api/v1``.

Key Concepts Demonstrated:
- Weighted task distribution to model realistic read/write ratios
- Per-user task pools so reads and updates hit rows that exist
- Tagged scenarios so CI can run subsets via ``--tags``
"""
