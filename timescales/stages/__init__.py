"""
timescales stages: runners in pipeline order.

    prepare      raw table -> observations.parquet
    aggregate    observations -> aggregated.parquet
    rolling_ac   aggregated -> rolling_ac.parquet
    acf_map      observations -> acf_map.parquet
    trend        rolling_ac -> ac_trend.parquet
"""
