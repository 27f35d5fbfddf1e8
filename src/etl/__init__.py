"""ETL package: provider record unification and pipeline utilities."""
