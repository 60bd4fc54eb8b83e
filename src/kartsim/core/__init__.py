LOGGER_NAME = "kartsim"
