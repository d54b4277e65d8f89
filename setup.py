from setuptools import setup, find_packages

setup(
    name='nnplayground',
    version='0.1.0',
    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    install_requires=[
        'numpy',
        'pygame',
    ],
    extras_require={
        'test': [
            'pytest',
            'torch',  # Cross-checks the hand-written gradients against autograd
        ],
    },
    entry_points={
        'console_scripts': [
            'nnplayground=nnplayground.__main__:main',
        ],
    },
    description='An interactive playground for training a small neural network on 2D points',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Education',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
    ],
    python_requires='>=3.8',
)
