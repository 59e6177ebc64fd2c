# REST API version used for every endpoint. Tableau Server 2020.1 or later.
VERSION = '3.7'
